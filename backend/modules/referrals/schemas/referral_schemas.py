# backend/modules/referrals/schemas/referral_schemas.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime

from ..models.referral_models import RewardType


class ReferralRuleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    is_enabled: bool = True
    reward_type: RewardType = RewardType.BOTH
    base_currency: str = Field(..., min_length=3, max_length=3)
    referrer_reward: float = Field(0.0, ge=0)
    referee_reward: float = Field(0.0, ge=0)
    min_transaction_threshold: float = Field(0.0, ge=0)

    @field_validator("base_currency")
    @classmethod
    def upper_currency(cls, v):
        return v.upper()


class ReferralRuleCreate(ReferralRuleBase):
    pass


class ReferralRuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_enabled: Optional[bool] = None
    reward_type: Optional[RewardType] = None
    base_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    referrer_reward: Optional[float] = Field(None, ge=0)
    referee_reward: Optional[float] = Field(None, ge=0)
    min_transaction_threshold: Optional[float] = Field(None, ge=0)

    @field_validator("base_currency")
    @classmethod
    def upper_currency(cls, v):
        return v.upper() if v else v


class ReferralRuleResponse(ReferralRuleBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime


class ReferralRuleList(BaseModel):
    data: List[ReferralRuleResponse]
