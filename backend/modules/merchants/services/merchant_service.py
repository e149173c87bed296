# backend/modules/merchants/services/merchant_service.py

from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Any, Dict, List
import logging
import uuid

from core.exceptions import APIError, NotFoundError
from core.time_utils import round_money
from ..models.merchant_models import (
    Commission,
    CommissionPayoutStatus,
    ForexLog,
    Merchant,
    MerchantStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from ..schemas.merchant_schemas import MerchantCreate

logger = logging.getLogger(__name__)


class MerchantService:
    """Merchants plus the read-only transaction and financial views"""

    def __init__(self, db: Session):
        self.db = db

    # Merchants
    def list_merchants(self) -> List[Merchant]:
        return self.db.query(Merchant).order_by(Merchant.mito_id).all()

    def get_merchant(self, merchant_id: str) -> Merchant:
        merchant = self.db.query(Merchant).filter(Merchant.id == merchant_id).first()
        if not merchant:
            raise NotFoundError(f"Merchant {merchant_id} not found")
        return merchant

    def _next_mito_id(self) -> str:
        """MITO001, MITO002, ... following the highest id in use"""
        highest = self.db.query(func.max(Merchant.mito_id)).scalar()
        number = int(highest[4:]) + 1 if highest and highest[4:].isdigit() else 1
        return f"MITO{number:03d}"

    def create_merchant(self, merchant_data: MerchantCreate) -> Merchant:
        """Register a merchant; it starts in Onboarding"""
        try:
            merchant = Merchant(
                id=f"m_{uuid.uuid4().hex[:12]}",
                mito_id=self._next_mito_id(),
                status=MerchantStatus.ONBOARDING.value,
                **merchant_data.model_dump(mode="json"),
            )
            self.db.add(merchant)
            self.db.commit()
            self.db.refresh(merchant)

            logger.info(f"Created merchant: {merchant.name} ({merchant.mito_id})")
            return merchant

        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating merchant: {str(e)}")
            raise

    def update_status(self, merchant_id: str, status: MerchantStatus) -> Merchant:
        try:
            merchant = self.get_merchant(merchant_id)
            merchant.status = status.value
            self.db.commit()
            self.db.refresh(merchant)

            logger.info(f"Merchant {merchant.mito_id} status set to {merchant.status}")
            return merchant

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating merchant {merchant_id} status: {str(e)}")
            raise

    # Transactions
    def _transaction_query(self):
        return (
            self.db.query(
                Transaction.id,
                Transaction.ref_number,
                Transaction.merchant_id,
                Merchant.name.label("merchant_name"),
                Transaction.type,
                Transaction.amount_debit_ngn,
                Transaction.debit_date,
                Transaction.status,
                ForexLog.amount_output_target,
                ForexLog.rate_applied,
                Commission.total_commission_ngn,
            )
            .join(Merchant, Transaction.merchant_id == Merchant.id)
            .outerjoin(ForexLog, ForexLog.transaction_id == Transaction.id)
            .outerjoin(Commission, Commission.transaction_id == Transaction.id)
        )

    def list_transactions(self) -> List[Dict[str, Any]]:
        rows = self._transaction_query().order_by(Transaction.debit_date.desc()).all()
        return [dict(row._mapping) for row in rows]

    def get_transaction(self, transaction_id: str) -> Dict[str, Any]:
        row = self._transaction_query().filter(Transaction.id == transaction_id).first()
        if not row:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return dict(row._mapping)

    # Financials
    def list_debits(self) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(
                Transaction.ref_number,
                Merchant.name,
                Transaction.amount_debit_ngn,
                Transaction.debit_date,
                Transaction.status,
            )
            .join(Merchant, Transaction.merchant_id == Merchant.id)
            .filter(Transaction.type == TransactionType.DEBIT.value)
            .order_by(Transaction.debit_date.desc())
            .all()
        )
        return [dict(row._mapping) for row in rows]

    def list_payouts(self) -> List[Dict[str, Any]]:
        """Transactions that have been converted to the payout currency"""
        rows = (
            self.db.query(
                Transaction.ref_number,
                Merchant.name,
                ForexLog.conversion_date,
                Transaction.amount_debit_ngn,
                ForexLog.rate_applied,
                ForexLog.amount_output_target,
                Transaction.status,
            )
            .join(Merchant, Transaction.merchant_id == Merchant.id)
            .join(ForexLog, ForexLog.transaction_id == Transaction.id)
            .order_by(ForexLog.conversion_date.desc())
            .all()
        )
        return [dict(row._mapping) for row in rows]

    # Dashboard
    def _total(self, query) -> float:
        return round_money(query.scalar())

    def get_kpis(self) -> Dict[str, Dict[str, float]]:
        """Commission and forex payout totals grouped by transaction progress"""
        successful = Transaction.status == TransactionStatus.SUCCESSFUL.value
        paid = Commission.payout_status == CommissionPayoutStatus.PAID.value

        commissions = self.db.query(
            func.coalesce(func.sum(Commission.total_commission_ngn), 0.0)
        ).join(Transaction, Commission.transaction_id == Transaction.id)

        conversions = self.db.query(
            func.coalesce(func.sum(ForexLog.amount_output_target), 0.0)
        ).join(Transaction, ForexLog.transaction_id == Transaction.id)

        unconverted = (
            self.db.query(func.coalesce(func.sum(Transaction.amount_debit_ngn), 0.0))
            .outerjoin(ForexLog, ForexLog.transaction_id == Transaction.id)
            .filter(ForexLog.id.is_(None))
        )

        return {
            "commission_earned": {
                "pending": self._total(commissions.filter(~successful, ~paid)),
                "available": self._total(commissions.filter(successful, ~paid)),
                "paid_out": self._total(commissions.filter(paid)),
            },
            "forex_payout": {
                "pending_conversion": self._total(unconverted),
                "to_be_paid": self._total(conversions.filter(~successful)),
                "paid_out": self._total(conversions.filter(successful)),
            },
        }
