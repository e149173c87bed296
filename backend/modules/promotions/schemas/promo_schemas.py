# backend/modules/promotions/schemas/promo_schemas.py

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from datetime import datetime

from core.time_utils import to_naive_utc
from ..models.promo_models import DiscountKind, PromoStatus, UNLIMITED


# Restrictions and segments
class PromoRestrictions(BaseModel):
    """Allow-lists applied at validation time; an empty list means unrestricted"""

    corridors: List[str] = Field(default_factory=list)  # "GBP-NGN"
    payment_methods: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("payment_methods", "paymentMethods"),
    )
    affiliates: List[str] = Field(default_factory=list)

    @field_validator("corridors")
    @classmethod
    def normalize_corridors(cls, v):
        return [corridor.strip().upper() for corridor in v]


class AllUsersSegment(BaseModel):
    type: Literal["all"] = "all"


class NewUsersSegment(BaseModel):
    type: Literal["new"] = "new"
    max_transactions: int = Field(0, ge=0)


class ChurnedUsersSegment(BaseModel):
    type: Literal["churned"] = "churned"
    inactivity_days: int = Field(90, ge=1)


class TargetedSegment(BaseModel):
    type: Literal["targeted"] = "targeted"
    user_id: str


UserSegment = Annotated[
    Union[AllUsersSegment, NewUsersSegment, ChurnedUsersSegment, TargetedSegment],
    Field(discriminator="type"),
]

_segment_adapter = TypeAdapter(UserSegment)

_LEGACY_SEGMENT_TYPES = {"new_users": "new", "churned_users": "churned"}


def parse_user_segment(raw: Optional[Dict[str, Any]], criteria: Optional[Dict[str, Any]] = None):
    """
    Build a typed segment from a stored or submitted descriptor.

    Accepts the admin UI's legacy shape ({"type": "new_users"} plus a separate
    criteria dict with max_tx / churn_days) as well as the typed shape.
    """
    data = dict(raw or {"type": "all"})
    data["type"] = _LEGACY_SEGMENT_TYPES.get(data.get("type"), data.get("type"))
    criteria = criteria or {}
    if data["type"] == "new" and "max_tx" in criteria:
        data.setdefault("max_transactions", criteria["max_tx"])
    if data["type"] == "churned" and "churn_days" in criteria:
        data.setdefault("inactivity_days", criteria["churn_days"])
    return _segment_adapter.validate_python(data)


def _positive_or_unlimited(v, field_name):
    if v != UNLIMITED and v <= 0:
        raise ValueError(f"{field_name} must be -1 (unlimited) or positive")
    return v


# Promo code schemas
class PromoCodeBase(BaseModel):
    """Promo configuration shared by single, bulk and campaign creation"""

    type: DiscountKind
    value: float = Field(..., ge=0)
    min_threshold: float = Field(0.0, ge=0)
    max_discount: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, max_length=3)
    usage_limit_global: int = UNLIMITED
    usage_limit_per_user: int = 1
    budget_limit: float = UNLIMITED
    start_date: datetime
    end_date: datetime
    restrictions: PromoRestrictions = Field(default_factory=PromoRestrictions)
    user_segment: Dict[str, Any] = Field(default_factory=lambda: {"type": "all"})
    user_segment_criteria: Optional[Dict[str, Any]] = None

    @field_validator("type", mode="before")
    @classmethod
    def accept_waiver_alias(cls, v):
        return DiscountKind.FEE_WAIVER.value if v == "Waiver" else v

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.upper() if v else v

    @field_validator("usage_limit_global", "usage_limit_per_user", "budget_limit")
    @classmethod
    def validate_caps(cls, v, info):
        return _positive_or_unlimited(v, info.field_name)

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_utc(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_window_and_segment(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        if self.max_discount is not None and self.type != DiscountKind.PERCENTAGE:
            raise ValueError("max_discount only applies to Percentage promo codes")
        if self.type == DiscountKind.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage discount cannot exceed 100%")
        # Normalizes legacy shapes and rejects unknown segment types
        segment = parse_user_segment(self.user_segment, self.user_segment_criteria)
        self.user_segment = segment.model_dump()
        self.user_segment_criteria = None
        return self


class PromoCodeCreate(PromoCodeBase):
    """Schema for creating a promo code"""

    code: str = Field(..., min_length=1, max_length=50)

    @field_validator("code")
    @classmethod
    def upper_code(cls, v):
        code = v.strip().upper()
        if not code:
            raise ValueError("code must not be blank")
        return code


class PromoStatusUpdate(BaseModel):
    status: PromoStatus


class PromoCodeResponse(BaseModel):
    """Promo code with parsed sub-fields"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    type: str
    value: float
    min_threshold: float
    max_discount: Optional[float]
    currency: Optional[str]
    usage_limit_global: int
    usage_limit_per_user: int
    usage_count: int
    total_discount_utilized: float
    budget_limit: float
    start_date: datetime
    end_date: datetime
    status: str
    restrictions: PromoRestrictions
    user_segment: Dict[str, Any]
    is_active: bool
    created_at: datetime
    last_campaign_sent: Optional[datetime] = None


class PromoCodeCreated(BaseModel):
    success: bool = True
    id: int
    code: str


class PromoCodeList(BaseModel):
    data: List[PromoCodeResponse]


# Evaluation
class PromoValidationRequest(BaseModel):
    """Proposed transaction a promo code is evaluated against"""

    code: str = Field(..., min_length=1, max_length=50)
    amount: float = Field(..., ge=0)
    currency: Optional[str] = None
    user_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("user_id", "userId")
    )
    source_currency: Optional[str] = Field(
        None, validation_alias=AliasChoices("source_currency", "sourceCurrency")
    )
    dest_currency: Optional[str] = Field(
        None, validation_alias=AliasChoices("dest_currency", "destCurrency")
    )
    payment_method: Optional[str] = Field(
        None, validation_alias=AliasChoices("payment_method", "paymentMethod")
    )
    affiliate: Optional[str] = None
    user_transaction_count: Optional[int] = Field(None, ge=0)
    days_since_last_transaction: Optional[int] = Field(None, ge=0)


class PromoRedeemRequest(PromoValidationRequest):
    """Evaluate and commit in one step"""

    transaction_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("transaction_id", "transactionId")
    )


class PromoValidationResponse(BaseModel):
    valid: bool = True
    promo: PromoCodeResponse
    discount_amount: float
    display_text: str
    fee_waived: bool = False
    rate_boost: Optional[float] = None
    bonus_credit: Optional[float] = None


# Redemption
class PromoApplyRequest(BaseModel):
    """Commit step for an already-evaluated promo code"""

    code: str = Field(..., min_length=1, max_length=50)
    discount_amount: float = Field(0.0, ge=0)
    user_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("user_id", "userId")
    )
    transaction_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("transaction_id", "transactionId")
    )


class PromoApplyResponse(BaseModel):
    success: bool = True
    code: str
    redemption_id: int
    discount_amount: float
    usage_count: int
    total_discount_utilized: float


class PromoRedeemResponse(PromoApplyResponse):
    display_text: str
    fee_waived: bool = False
    rate_boost: Optional[float] = None
    bonus_credit: Optional[float] = None


class PromoRedemptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    promo_code_id: int
    code: str
    transaction_id: Optional[str]
    user_id: Optional[str]
    discount_amount: float
    status: str
    created_at: datetime


# Bulk generation and campaigns
class PromoBulkGenerateRequest(BaseModel):
    batch_size: int = Field(..., ge=1)
    prefix: Optional[str] = Field(None, max_length=20)
    config: PromoCodeBase


class PromoBulkGenerateResponse(BaseModel):
    success: bool = True
    count: int
    codes: List[str]


class PromoDistributionConfig(PromoCodeBase):
    prefix: str = Field("OFFER", max_length=20)


class PromoDistributeRequest(BaseModel):
    """Send one existing code, or one fresh single-use code per target"""

    segment: Literal["new_users", "churned_users"]
    user_ids: Optional[List[str]] = None
    promo_config: Optional[PromoDistributionConfig] = None
    existing_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("existing_code", "existing_code_id")
    )

    @model_validator(mode="after")
    def one_source(self):
        if bool(self.promo_config) == bool(self.existing_code):
            raise ValueError("Provide exactly one of promo_config or existing_code")
        return self


class PromoDistributeResponse(BaseModel):
    success: bool = True
    count: int
    segment: str
    codes: List[str]


class SegmentSizes(BaseModel):
    new_users: int
    churned_users: int


class SegmentSizesResponse(BaseModel):
    data: SegmentSizes
