# backend/modules/merchants/models/merchant_models.py

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from enum import Enum

from core.database import Base


class MerchantType(str, Enum):
    BUSINESS = "Business"
    INDIVIDUAL = "Individual"


class MerchantStatus(str, Enum):
    ACTIVE = "Active"
    ONBOARDING = "Onboarding"
    SUSPENDED = "Suspended"


class TransactionStatus(str, Enum):
    SUCCESSFUL = "Successful"
    PENDING = "Pending"


class CommissionPayoutStatus(str, Enum):
    DUE = "Due"
    PAID = "Paid"


class TransactionType(str, Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"


class Merchant(Base):
    __tablename__ = "merchants"

    id = Column(String(50), primary_key=True)
    mito_id = Column(String(20), unique=True, nullable=False, index=True)
    type = Column(String(20), nullable=False, default=MerchantType.BUSINESS.value)
    name = Column(String(200), nullable=False)
    reg_number = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    base_currency = Column(String(3), nullable=False, default="NGN")
    payout_currency = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default=MerchantStatus.ONBOARDING.value, index=True)

    transactions = relationship("Transaction", back_populates="merchant")

    def __repr__(self):
        return f"<Merchant(id='{self.id}', mito_id='{self.mito_id}', name='{self.name}')>"


class Transaction(Base):
    """A merchant debit collected in NGN"""
    __tablename__ = "transactions"

    id = Column(String(50), primary_key=True)
    ref_number = Column(String(50), unique=True, nullable=False, index=True)
    merchant_id = Column(String(50), ForeignKey("merchants.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False, default=TransactionType.DEBIT.value)
    amount_debit_ngn = Column(Float, nullable=False)
    debit_date = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False)

    merchant = relationship("Merchant", back_populates="transactions")
    forex_log = relationship("ForexLog", back_populates="transaction", uselist=False)
    commission = relationship("Commission", back_populates="transaction", uselist=False)

    __table_args__ = (
        Index("ix_transactions_type_date", "type", "debit_date"),
    )


class ForexLog(Base):
    """NGN to payout-currency conversion of a transaction"""
    __tablename__ = "forex_logs"

    id = Column(String(50), primary_key=True)
    transaction_id = Column(String(50), ForeignKey("transactions.id"), nullable=False, index=True)
    conversion_date = Column(DateTime, nullable=False)
    rate_applied = Column(Float, nullable=False)
    amount_input_ngn = Column(Float, nullable=False)
    amount_output_target = Column(Float, nullable=False)

    transaction = relationship("Transaction", back_populates="forex_log")


class Commission(Base):
    __tablename__ = "commissions"

    id = Column(String(50), primary_key=True)
    transaction_id = Column(String(50), ForeignKey("transactions.id"), nullable=False, index=True)
    base_commission_ngn = Column(Float, nullable=False, default=0.0)
    forex_spread_ngn = Column(Float, nullable=False, default=0.0)
    total_commission_ngn = Column(Float, nullable=False, default=0.0)
    payout_status = Column(String(20), nullable=False, default=CommissionPayoutStatus.DUE.value)

    transaction = relationship("Transaction", back_populates="commission")
