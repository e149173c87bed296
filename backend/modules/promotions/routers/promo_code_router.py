# backend/modules/promotions/routers/promo_code_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from core.database import get_db

from ..models.promo_models import PromoCode
from ..schemas.promo_schemas import (
    PromoApplyRequest,
    PromoApplyResponse,
    PromoBulkGenerateRequest,
    PromoBulkGenerateResponse,
    PromoCodeCreate,
    PromoCodeCreated,
    PromoCodeList,
    PromoCodeResponse,
    PromoDistributeRequest,
    PromoDistributeResponse,
    PromoRedeemRequest,
    PromoRedeemResponse,
    PromoRedemptionResponse,
    PromoStatusUpdate,
    PromoValidationRequest,
    PromoValidationResponse,
)
from ..services.campaign_service import CampaignService
from ..services.promo_code_service import PromoCodeService
from ..services.redemption_service import RedemptionService

router = APIRouter(prefix="/api/promocodes", tags=["promo-codes"])


def promo_response(
    promo: PromoCode, last_campaign_sent: Optional[datetime] = None
) -> PromoCodeResponse:
    response = PromoCodeResponse.model_validate(promo)
    response.last_campaign_sent = last_campaign_sent
    return response


@router.get("", response_model=PromoCodeList)
def list_promo_codes(db: Session = Depends(get_db)):
    """List promo codes with their last campaign send time"""
    service = PromoCodeService(db)
    return PromoCodeList(
        data=[promo_response(promo, sent) for promo, sent in service.list_promo_codes()]
    )


@router.post("", response_model=PromoCodeCreated)
def create_promo_code(promo_data: PromoCodeCreate, db: Session = Depends(get_db)):
    """Create a promo code"""
    promo = PromoCodeService(db).create_promo_code(promo_data)
    return PromoCodeCreated(id=promo.id, code=promo.code)


@router.post("/generate", response_model=PromoBulkGenerateResponse)
def generate_promo_codes(
    request: PromoBulkGenerateRequest, db: Session = Depends(get_db)
):
    """Generate a batch of random codes sharing one configuration"""
    promos = PromoCodeService(db).generate_promo_codes(request)
    return PromoBulkGenerateResponse(
        count=len(promos), codes=[promo.code for promo in promos]
    )


@router.post("/distribute", response_model=PromoDistributeResponse)
def distribute_promo_codes(
    request: PromoDistributeRequest, db: Session = Depends(get_db)
):
    """Send promo codes to a user segment"""
    _, codes = CampaignService(db).distribute(request)
    return PromoDistributeResponse(count=len(codes), segment=request.segment, codes=codes)


@router.post("/validate", response_model=PromoValidationResponse)
def validate_promo_code(
    request: PromoValidationRequest, db: Session = Depends(get_db)
):
    """Check a code against a proposed transaction without using it"""
    evaluation = RedemptionService(db).validate(request)
    outcome = evaluation.outcome
    return PromoValidationResponse(
        promo=promo_response(evaluation.promo),
        discount_amount=outcome.discount_amount,
        display_text=evaluation.display_text,
        fee_waived=outcome.fee_waived,
        rate_boost=outcome.rate_boost,
        bonus_credit=outcome.bonus_credit,
    )


@router.post("/apply", response_model=PromoApplyResponse)
def apply_promo_code(request: PromoApplyRequest, db: Session = Depends(get_db)):
    """Record one use of a code that was validated earlier"""
    promo, redemption = RedemptionService(db).commit(
        code=request.code,
        discount_amount=request.discount_amount,
        user_id=request.user_id,
        transaction_id=request.transaction_id,
    )
    return PromoApplyResponse(
        code=promo.code,
        redemption_id=redemption.id,
        discount_amount=redemption.discount_amount,
        usage_count=promo.usage_count,
        total_discount_utilized=promo.total_discount_utilized,
    )


@router.post("/redeem", response_model=PromoRedeemResponse)
def redeem_promo_code(request: PromoRedeemRequest, db: Session = Depends(get_db)):
    """Validate and record a use in one step"""
    evaluation, promo, redemption = RedemptionService(db).redeem(request)
    outcome = evaluation.outcome
    return PromoRedeemResponse(
        code=promo.code,
        redemption_id=redemption.id,
        discount_amount=redemption.discount_amount,
        usage_count=promo.usage_count,
        total_discount_utilized=promo.total_discount_utilized,
        display_text=evaluation.display_text,
        fee_waived=outcome.fee_waived,
        rate_boost=outcome.rate_boost,
        bonus_credit=outcome.bonus_credit,
    )


@router.get("/{promo_id}", response_model=PromoCodeResponse)
def get_promo_code(promo_id: int, db: Session = Depends(get_db)):
    service = PromoCodeService(db)
    promo = service.get_promo_code(promo_id)
    return promo_response(promo, service.last_campaign_sent(promo.code))


@router.put("/{promo_id}/status", response_model=PromoCodeResponse)
def update_promo_code_status(
    promo_id: int, update: PromoStatusUpdate, db: Session = Depends(get_db)
):
    """Enable or disable a promo code"""
    promo = PromoCodeService(db).update_status(promo_id, update.status)
    return promo_response(promo)


@router.delete("/{promo_id}")
def delete_promo_code(promo_id: int, db: Session = Depends(get_db)):
    PromoCodeService(db).delete_promo_code(promo_id)
    return {"success": True}


@router.get("/{promo_id}/redemptions", response_model=List[PromoRedemptionResponse])
def list_promo_redemptions(promo_id: int, db: Session = Depends(get_db)):
    """Redemption history for one promo code"""
    return PromoCodeService(db).list_redemptions(promo_id)
