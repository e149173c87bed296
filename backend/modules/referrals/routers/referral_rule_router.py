# backend/modules/referrals/routers/referral_rule_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db

from ..schemas.referral_schemas import (
    ReferralRuleCreate,
    ReferralRuleList,
    ReferralRuleResponse,
    ReferralRuleUpdate,
)
from ..services.referral_rule_service import ReferralRuleService

router = APIRouter(prefix="/api/referral-rules", tags=["referral-rules"])


@router.get("", response_model=ReferralRuleList)
def list_referral_rules(db: Session = Depends(get_db)):
    return ReferralRuleList(data=ReferralRuleService(db).list_rules())


@router.post("", response_model=ReferralRuleResponse)
def create_referral_rule(rule_data: ReferralRuleCreate, db: Session = Depends(get_db)):
    """Create a referral rule; 409 if its currency already has one"""
    return ReferralRuleService(db).create_rule(rule_data)


@router.get("/{rule_id}", response_model=ReferralRuleResponse)
def get_referral_rule(rule_id: int, db: Session = Depends(get_db)):
    return ReferralRuleService(db).get_rule(rule_id)


@router.put("/{rule_id}", response_model=ReferralRuleResponse)
def update_referral_rule(
    rule_id: int, update_data: ReferralRuleUpdate, db: Session = Depends(get_db)
):
    return ReferralRuleService(db).update_rule(rule_id, update_data)


@router.delete("/{rule_id}")
def delete_referral_rule(rule_id: int, db: Session = Depends(get_db)):
    ReferralRuleService(db).delete_rule(rule_id)
    return {"success": True}
