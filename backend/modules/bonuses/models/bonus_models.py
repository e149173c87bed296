# backend/modules/bonuses/models/bonus_models.py

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Text,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from enum import Enum

from core.database import Base
from core.mixins import TimestampMixin
from core.time_utils import utcnow


class BonusType(str, Enum):
    LOYALTY_CREDIT = "LOYALTY_CREDIT"
    TRANSACTION_THRESHOLD_CREDIT = "TRANSACTION_THRESHOLD_CREDIT"
    REQUEST_MONEY_CREDIT = "REQUEST_MONEY_CREDIT"


class CommissionType(str, Enum):
    """How credit_amount / tier values are interpreted"""
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


class SchemeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"


class LedgerEntryType(str, Enum):
    EARNED = "EARNED"
    APPLIED = "APPLIED"
    EXPIRED = "EXPIRED"
    VOIDED = "VOIDED"


class ReasonCode(str, Enum):
    """Reason codes accepted for manual adjustments"""
    GOODWILL = "GOODWILL"
    CORRECTION = "CORRECTION"
    MANUAL_ADJUSTMENT = "MANUAL_ADJUSTMENT"
    LOYALTY = "LOYALTY"


class BonusScheme(Base, TimestampMixin):
    """Rules for crediting a user's bonus wallet"""
    __tablename__ = "bonus_schemes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    bonus_type = Column(String(40), nullable=False)

    # Flat award
    credit_amount = Column(Float, nullable=False, default=0.0)
    currency = Column(String(3), nullable=False, default="GBP")
    min_transaction_threshold = Column(Float, nullable=False, default=0.0)

    # Loyalty schemes only
    min_transactions = Column(Integer, nullable=True)
    time_period_days = Column(Integer, nullable=True)

    commission_type = Column(String(20), nullable=False, default=CommissionType.FIXED.value)
    commission_percentage = Column(Float, nullable=True)

    # [{"min": 0, "max": 1000, "value": 50}, ..., {"min": 5001, "max": null, "value": 200}]
    is_tiered = Column(Boolean, nullable=False, default=False)
    tiers = Column(JSON, nullable=False, default=list)

    eligibility_rules = Column(JSON, nullable=False, default=dict)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=SchemeStatus.ACTIVE.value, index=True)

    ledger_entries = relationship("CreditLedgerEntry", back_populates="scheme")

    def __repr__(self):
        return f"<BonusScheme(id={self.id}, name='{self.name}', type='{self.bonus_type}')>"


class CreditLedgerEntry(Base):
    """
    Append-only credit wallet movement.

    Positive amounts credit the user, negative amounts debit them. Rows are
    never updated or deleted; the balance is the sum of a user's rows.
    """
    __tablename__ = "credit_ledger"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    type = Column(String(20), nullable=False, index=True)
    scheme_id = Column(Integer, ForeignKey("bonus_schemes.id"), nullable=True, index=True)

    # Transaction id, promo code, or MANUAL:<idempotency key>
    reference_id = Column(String(150), nullable=True, index=True)
    reason_code = Column(String(40), nullable=True)
    notes = Column(Text, nullable=True)
    admin_user = Column(String(100), nullable=True)
    idempotency_key = Column(String(100), nullable=True)

    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    scheme = relationship("BonusScheme", back_populates="ledger_entries")

    __table_args__ = (
        Index("ix_credit_ledger_user_scheme_type", "user_id", "scheme_id", "type"),
        # Idempotency keys are scoped to the user they were issued for
        UniqueConstraint("user_id", "idempotency_key", name="uq_credit_ledger_user_idempotency_key"),
    )

    @property
    def scheme_name(self):
        return self.scheme.name if self.scheme else None

    def __repr__(self):
        return f"<CreditLedgerEntry(id={self.id}, user='{self.user_id}', amount={self.amount}, type='{self.type}')>"
