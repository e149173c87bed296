# backend/modules/bonuses/schemas/bonus_schemas.py

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from typing import List, Optional
from datetime import date, datetime

from core.time_utils import to_naive_utc
from ..models.bonus_models import (
    BonusType,
    CommissionType,
    LedgerEntryType,
    ReasonCode,
    SchemeStatus,
)
from ..services.tier_calculator import Tier, check_tier_table


class TierSchema(BaseModel):
    """One tier; max None means open-ended"""

    min: float = Field(..., ge=0)
    max: Optional[float] = None
    value: float = Field(..., ge=0)


class EligibilityRules(BaseModel):
    segments: List[str] = Field(default_factory=list)
    one_time_only: bool = Field(
        True, validation_alias=AliasChoices("one_time_only", "oneTimeOnly")
    )
    corridors: List[str] = Field(default_factory=list)
    payment_methods: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("payment_methods", "paymentMethods"),
    )
    affiliates: List[str] = Field(default_factory=list)


# Bonus scheme schemas
class BonusSchemeFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    bonus_type: BonusType
    credit_amount: float = Field(0.0, ge=0)
    currency: str = Field("GBP", min_length=3, max_length=3)
    min_transaction_threshold: float = Field(0.0, ge=0)
    min_transactions: Optional[int] = Field(None, ge=0)
    time_period_days: Optional[int] = Field(None, ge=0)
    commission_type: CommissionType = CommissionType.FIXED
    commission_percentage: Optional[float] = Field(None, ge=0, le=100)
    is_tiered: bool = False
    tiers: List[TierSchema] = Field(default_factory=list)
    eligibility_rules: EligibilityRules = Field(default_factory=EligibilityRules)
    start_date: datetime
    end_date: datetime
    status: SchemeStatus = SchemeStatus.ACTIVE


class BonusSchemeBase(BonusSchemeFields):
    """Scheme definition as submitted by an admin"""

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.upper()

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_utc(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_scheme(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")

        if self.is_tiered:
            if not self.tiers:
                raise ValueError("Tiered schemes need at least one tier")
            check_tier_table([Tier(t.min, t.max, t.value) for t in self.tiers])
        elif (
            self.commission_type == CommissionType.PERCENTAGE
            and self.commission_percentage is None
        ):
            raise ValueError("commission_percentage is required for PERCENTAGE schemes")

        return self


class BonusSchemeCreate(BonusSchemeBase):
    pass


class BonusSchemeUpdate(BaseModel):
    """Partial update; the merged scheme is re-validated as a whole"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bonus_type: Optional[BonusType] = None
    credit_amount: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    min_transaction_threshold: Optional[float] = Field(None, ge=0)
    min_transactions: Optional[int] = Field(None, ge=0)
    time_period_days: Optional[int] = Field(None, ge=0)
    commission_type: Optional[CommissionType] = None
    commission_percentage: Optional[float] = Field(None, ge=0, le=100)
    is_tiered: Optional[bool] = None
    tiers: Optional[List[TierSchema]] = None
    eligibility_rules: Optional[EligibilityRules] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[SchemeStatus] = None


class BonusSchemeResponse(BonusSchemeFields):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime


class BonusSchemeList(BaseModel):
    data: List[BonusSchemeResponse]


class BonusSchemeCreated(BaseModel):
    success: bool = True
    id: int


# Credit ledger schemas
class AwardBonusRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=100)
    scheme_id: int
    transaction_id: Optional[str] = None
    admin_user: Optional[str] = None


class AwardBonusResponse(BaseModel):
    success: bool = True
    entry_id: int
    user_id: str
    scheme_id: int
    amount: float
    currency: str
    expires_at: datetime


class ManualAdjustmentRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=100)
    amount: float
    type: LedgerEntryType
    reason_code: ReasonCode
    notes: Optional[str] = None
    scheme_id: Optional[int] = None
    admin_user: Optional[str] = None
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=100)

    @field_validator("type")
    @classmethod
    def manual_types_only(cls, v):
        if v not in (LedgerEntryType.EARNED, LedgerEntryType.VOIDED):
            raise ValueError("Manual adjustments must be EARNED or VOIDED")
        return v


class CreditRedeemRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=100)
    amount: float = Field(..., gt=0)
    transaction_id: Optional[str] = None


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    amount: float
    type: str
    scheme_id: Optional[int]
    scheme_name: Optional[str] = None
    reference_id: Optional[str]
    reason_code: Optional[str]
    notes: Optional[str]
    admin_user: Optional[str]
    expires_at: Optional[datetime]
    created_at: datetime


class ManualAdjustmentResponse(BaseModel):
    success: bool = True
    idempotent: bool = False
    entry_id: int
    entry: LedgerEntryResponse


class CreditRedeemResponse(BaseModel):
    success: bool = True
    entry_id: int
    amount: float
    balance: float


class CreditHistoryFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    event_type: Optional[LedgerEntryType] = None
    scheme_id: Optional[int] = None


class CreditSummaryResponse(BaseModel):
    user_id: str
    balance: float
    cost_incurred: float
    currency: str
    history: List[LedgerEntryResponse]
