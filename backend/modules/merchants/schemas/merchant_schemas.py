# backend/modules/merchants/schemas/merchant_schemas.py

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime

from ..models.merchant_models import MerchantStatus, MerchantType


# Merchant schemas
class MerchantCreate(BaseModel):
    type: MerchantType = MerchantType.BUSINESS
    name: str = Field(..., min_length=1, max_length=200)
    reg_number: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    base_currency: str = Field("NGN", min_length=3, max_length=3)
    payout_currency: str = Field(..., min_length=3, max_length=3)

    @field_validator("base_currency", "payout_currency")
    @classmethod
    def upper_currency(cls, v):
        return v.upper()


class MerchantStatusUpdate(BaseModel):
    status: MerchantStatus


class MerchantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    mito_id: str
    type: str
    name: str
    reg_number: Optional[str]
    email: Optional[str]
    base_currency: str
    payout_currency: str
    status: str


class MerchantList(BaseModel):
    data: List[MerchantResponse]


class MerchantCreated(BaseModel):
    success: bool = True
    id: str
    mito_id: str


# Transaction schemas
class TransactionDetail(BaseModel):
    """Transaction joined with merchant, forex and commission"""

    id: str
    ref_number: str
    merchant_id: str
    merchant_name: str
    type: str
    amount_debit_ngn: float
    debit_date: datetime
    status: str
    amount_output_target: Optional[float] = None
    rate_applied: Optional[float] = None
    total_commission_ngn: Optional[float] = None


class TransactionList(BaseModel):
    data: List[TransactionDetail]


class DebitLogEntry(BaseModel):
    ref_number: str
    name: str
    amount_debit_ngn: float
    debit_date: datetime
    status: str


class DebitLogList(BaseModel):
    data: List[DebitLogEntry]


class PayoutEntry(BaseModel):
    ref_number: str
    name: str
    conversion_date: datetime
    amount_debit_ngn: float
    rate_applied: float
    amount_output_target: float
    status: str


class PayoutList(BaseModel):
    data: List[PayoutEntry]


# Dashboard schemas
class CommissionKpi(BaseModel):
    """Commission in NGN by where it is in the payout cycle"""

    pending: float
    available: float
    paid_out: float


class ForexPayoutKpi(BaseModel):
    pending_conversion: float  # NGN not yet converted
    to_be_paid: float  # payout currency
    paid_out: float  # payout currency


class DashboardKpi(BaseModel):
    commission_earned: CommissionKpi
    forex_payout: ForexPayoutKpi
