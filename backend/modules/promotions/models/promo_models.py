# backend/modules/promotions/models/promo_models.py

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from enum import Enum

from core.database import Base
from core.mixins import TimestampMixin
from core.time_utils import utcnow


class DiscountKind(str, Enum):
    """How a promo code's value is interpreted"""
    FIXED = "Fixed"                  # value is a currency amount off
    PERCENTAGE = "Percentage"        # value is a percent of the transfer amount
    FEE_WAIVER = "FeeWaiver"         # the caller waives its own fee
    FX_BOOST = "FX_BOOST"            # value is an exchange-rate delta
    BONUS_CREDIT = "BONUS_CREDIT"    # value is credited to the sender's wallet


class PromoStatus(str, Enum):
    ACTIVE = "Active"
    DISABLED = "Disabled"


class RedemptionStatus(str, Enum):
    REDEEMED = "Redeemed"


UNLIMITED = -1


class PromoCode(Base, TimestampMixin):
    """Promo code definition with running usage and budget counters"""
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)  # stored uppercase

    # Discount configuration
    type = Column(String(20), nullable=False)
    value = Column(Float, nullable=False, default=0.0)
    min_threshold = Column(Float, nullable=False, default=0.0)
    max_discount = Column(Float, nullable=True)  # Percentage kind only
    currency = Column(String(3), nullable=True)

    # Caps (-1 = unlimited)
    usage_limit_global = Column(Integer, nullable=False, default=UNLIMITED)
    usage_limit_per_user = Column(Integer, nullable=False, default=1)
    budget_limit = Column(Float, nullable=False, default=UNLIMITED)

    # Running counters, only moved by the conditional update in RedemptionService
    usage_count = Column(Integer, nullable=False, default=0)
    total_discount_utilized = Column(Float, nullable=False, default=0.0)
    version = Column(Integer, nullable=False, default=1)

    # Validity window [start_date, end_date)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=PromoStatus.ACTIVE.value, index=True)

    # Typed in schemas.PromoRestrictions / schemas.UserSegment
    restrictions = Column(JSON, nullable=False, default=dict)
    user_segment = Column(JSON, nullable=False, default=lambda: {"type": "all"})

    redemptions = relationship("PromoRedemption", back_populates="promo_code")

    __table_args__ = (
        Index("ix_promo_codes_status_dates", "status", "start_date", "end_date"),
    )

    @property
    def is_active(self) -> bool:
        """Active status and inside the validity window"""
        now = utcnow()
        return (
            self.status == PromoStatus.ACTIVE.value
            and self.start_date <= now < self.end_date
        )

    @property
    def has_usage_cap(self) -> bool:
        return self.usage_limit_global != UNLIMITED

    def __repr__(self):
        return f"<PromoCode(id={self.id}, code='{self.code}', type='{self.type}')>"


class PromoRedemption(Base, TimestampMixin):
    """One committed promo application; feeds per-user caps and cost reporting"""
    __tablename__ = "promo_redemptions"

    id = Column(Integer, primary_key=True, index=True)
    promo_code_id = Column(Integer, ForeignKey("promo_codes.id"), nullable=False, index=True)
    code = Column(String(50), nullable=False)
    transaction_id = Column(String(100), nullable=True, index=True)
    user_id = Column(String(100), nullable=True, index=True)
    discount_amount = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default=RedemptionStatus.REDEEMED.value)

    promo_code = relationship("PromoCode", back_populates="redemptions")

    __table_args__ = (
        Index("ix_promo_redemptions_promo_user", "promo_code_id", "user_id"),
        Index("ix_promo_redemptions_user_date", "user_id", "created_at"),
    )


class CampaignLog(Base):
    """A promo code sent to a user as part of a distribution campaign"""
    __tablename__ = "campaign_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    code = Column(String(50), nullable=False, index=True)
    segment = Column(String(50), nullable=False)
    sent_at = Column(DateTime, nullable=False, default=utcnow)
    status = Column(String(20), nullable=False, default="Sent")
