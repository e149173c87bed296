# backend/modules/bonuses/routers/credit_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from core.database import get_db

from ..models.bonus_models import LedgerEntryType
from ..schemas.bonus_schemas import (
    AwardBonusRequest,
    AwardBonusResponse,
    CreditHistoryFilters,
    CreditRedeemRequest,
    CreditRedeemResponse,
    CreditSummaryResponse,
    LedgerEntryResponse,
    ManualAdjustmentRequest,
    ManualAdjustmentResponse,
)
from ..services.credit_ledger_service import CreditLedgerService

router = APIRouter(prefix="/api/credits", tags=["credits"])


@router.post("/award-bonus", response_model=AwardBonusResponse)
def award_bonus(request: AwardBonusRequest, db: Session = Depends(get_db)):
    """Credit a user under a bonus scheme"""
    entry, scheme = CreditLedgerService(db).award_bonus(request)
    return AwardBonusResponse(
        entry_id=entry.id,
        user_id=entry.user_id,
        scheme_id=scheme.id,
        amount=entry.amount,
        currency=scheme.currency,
        expires_at=entry.expires_at,
    )


@router.post("/manual", response_model=ManualAdjustmentResponse)
def manual_adjustment(request: ManualAdjustmentRequest, db: Session = Depends(get_db)):
    """Admin credit or debit; notes are mandatory"""
    entry, idempotent = CreditLedgerService(db).manual_adjustment(request)
    return ManualAdjustmentResponse(
        idempotent=idempotent,
        entry_id=entry.id,
        entry=LedgerEntryResponse.model_validate(entry),
    )


@router.post("/redeem", response_model=CreditRedeemResponse)
def redeem_credit(request: CreditRedeemRequest, db: Session = Depends(get_db)):
    """Spend wallet credit against a transaction"""
    entry, balance = CreditLedgerService(db).redeem_credit(request)
    return CreditRedeemResponse(entry_id=entry.id, amount=entry.amount, balance=balance)


@router.get("/{user_id}", response_model=CreditSummaryResponse)
def get_user_credits(
    user_id: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    event_type: Optional[LedgerEntryType] = Query(None, alias="eventType"),
    scheme_id: Optional[int] = Query(None, alias="schemeId"),
    db: Session = Depends(get_db),
):
    """Balance, cost incurred and filtered history for one user"""
    filters = CreditHistoryFilters(
        start_date=start_date,
        end_date=end_date,
        event_type=event_type,
        scheme_id=scheme_id,
    )
    return CreditLedgerService(db).get_summary(user_id, filters)
