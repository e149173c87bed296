# backend/modules/bonuses/services/credit_ledger_service.py

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timedelta
import logging

from core.config import get_settings
from core.exceptions import APIError, BusinessRuleError, ConflictError, NotFoundError
from core.query_logger import log_query_performance
from core.time_utils import round_money, start_of_day, utcnow
from modules.merchants.models.merchant_models import Transaction
from modules.promotions.models.promo_models import PromoRedemption
from ..models.bonus_models import (
    BonusScheme,
    CommissionType,
    CreditLedgerEntry,
    LedgerEntryType,
    SchemeStatus,
)
from ..schemas.bonus_schemas import (
    AwardBonusRequest,
    CreditHistoryFilters,
    CreditRedeemRequest,
    EligibilityRules,
    ManualAdjustmentRequest,
)
from .tier_calculator import (
    AwardCalculationError,
    Tier,
    calculate_award,
)

logger = logging.getLogger(__name__)

MANUAL_REFERENCE = "MANUAL"


class CreditLedgerService:
    """
    Append-only bonus wallet.

    Every balance change is a new CreditLedgerEntry row; nothing here updates
    or deletes an existing entry.
    """

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    # Awards
    def _get_scheme(self, scheme_id: int) -> BonusScheme:
        scheme = self.db.query(BonusScheme).filter(BonusScheme.id == scheme_id).first()
        if not scheme:
            raise NotFoundError(f"Bonus scheme {scheme_id} not found")
        return scheme

    def _already_earned(self, user_id: str, scheme_id: int) -> bool:
        return (
            self.db.query(CreditLedgerEntry.id)
            .filter(
                CreditLedgerEntry.user_id == user_id,
                CreditLedgerEntry.scheme_id == scheme_id,
                CreditLedgerEntry.type == LedgerEntryType.EARNED.value,
            )
            .first()
            is not None
        )

    def _transaction_amount(
        self, scheme: BonusScheme, transaction_id: Optional[str]
    ) -> Optional[float]:
        """Amount of the qualifying transaction, when the scheme needs one"""
        needs_amount = (
            scheme.is_tiered or scheme.commission_type == CommissionType.PERCENTAGE.value
        )
        if not needs_amount or not transaction_id:
            return None

        transaction = (
            self.db.query(Transaction).filter(Transaction.id == transaction_id).first()
        )
        if not transaction:
            raise NotFoundError(
                f"Transaction {transaction_id} not found", "TRANSACTION_NOT_FOUND"
            )
        return transaction.amount_debit_ngn

    def award_bonus(self, request: AwardBonusRequest) -> Tuple[CreditLedgerEntry, BonusScheme]:
        """
        Credit a user under a bonus scheme

        Raises:
            NotFoundError: unknown scheme or transaction
            BusinessRuleError: SCHEME_EXPIRED, SCHEME_INACTIVE, TIER_MISMATCH,
                TRANSACTION_REQUIRED
            ConflictError: ALREADY_EARNED for one-time schemes
        """
        try:
            scheme = self._get_scheme(request.scheme_id)
            now = utcnow()

            if now > scheme.end_date:
                raise BusinessRuleError("SCHEME_EXPIRED", "Bonus scheme has expired")
            if scheme.status != SchemeStatus.ACTIVE.value:
                raise BusinessRuleError("SCHEME_INACTIVE", "Bonus scheme is not active")

            rules = EligibilityRules.model_validate(scheme.eligibility_rules or {})
            if rules.one_time_only and self._already_earned(request.user_id, scheme.id):
                raise ConflictError(
                    "User has already earned this one-time bonus", "ALREADY_EARNED"
                )

            try:
                amount = calculate_award(
                    commission_type=scheme.commission_type,
                    credit_amount=scheme.credit_amount,
                    commission_percentage=scheme.commission_percentage,
                    is_tiered=scheme.is_tiered,
                    tiers=[Tier.from_dict(tier) for tier in scheme.tiers or []],
                    transaction_amount=self._transaction_amount(
                        scheme, request.transaction_id
                    ),
                )
            except AwardCalculationError as e:
                raise BusinessRuleError(e.error_code, str(e))

            entry = CreditLedgerEntry(
                user_id=request.user_id,
                amount=amount,
                type=LedgerEntryType.EARNED.value,
                scheme_id=scheme.id,
                reference_id=request.transaction_id,
                reason_code=scheme.bonus_type,
                admin_user=request.admin_user,
                expires_at=now + timedelta(days=self.settings.credit_expiry_days),
                created_at=now,
            )
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)

            logger.info(
                f"Awarded {amount:.2f} {scheme.currency} to {request.user_id} "
                f"under scheme {scheme.id} (entry {entry.id})"
            )
            return entry, scheme

        except APIError as e:
            self.db.rollback()
            logger.warning(
                f"Bonus award for {request.user_id} on scheme {request.scheme_id} "
                f"rejected: {e.error_code}"
            )
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error awarding bonus to {request.user_id}: {str(e)}")
            raise

    # Manual adjustments
    def _validate_adjustment(self, request: ManualAdjustmentRequest) -> None:
        if not request.notes or not request.notes.strip():
            raise BusinessRuleError(
                "NOTES_REQUIRED", "Notes are required for manual adjustments"
            )
        if request.amount == 0:
            raise BusinessRuleError("INVALID_AMOUNT", "Adjustment amount cannot be zero")
        if request.type == LedgerEntryType.EARNED and request.amount < 0:
            raise BusinessRuleError(
                "INVALID_AMOUNT", "EARNED adjustments must have a positive amount"
            )
        if request.type == LedgerEntryType.VOIDED and request.amount > 0:
            raise BusinessRuleError(
                "INVALID_AMOUNT", "VOIDED adjustments must have a negative amount"
            )

    def _find_by_idempotency_key(
        self, user_id: str, key: str
    ) -> Optional[CreditLedgerEntry]:
        return (
            self.db.query(CreditLedgerEntry)
            .filter(
                CreditLedgerEntry.user_id == user_id,
                CreditLedgerEntry.idempotency_key == key,
            )
            .first()
        )

    def manual_adjustment(
        self, request: ManualAdjustmentRequest
    ) -> Tuple[CreditLedgerEntry, bool]:
        """
        Book an admin adjustment

        Returns:
            (entry, idempotent) where idempotent is True when an earlier entry
            with the same idempotency key was returned instead of a new one
        """
        try:
            self._validate_adjustment(request)

            if request.idempotency_key:
                existing = self._find_by_idempotency_key(
                    request.user_id, request.idempotency_key
                )
                if existing:
                    logger.info(
                        f"Manual adjustment replay for key {request.idempotency_key} "
                        f"returned entry {existing.id}"
                    )
                    return existing, True

            if request.scheme_id is not None:
                self._get_scheme(request.scheme_id)

            reference_id = MANUAL_REFERENCE
            if request.idempotency_key:
                reference_id = f"{MANUAL_REFERENCE}:{request.idempotency_key}"

            entry = CreditLedgerEntry(
                user_id=request.user_id,
                amount=round_money(request.amount),
                type=request.type.value,
                scheme_id=request.scheme_id,
                reference_id=reference_id,
                reason_code=request.reason_code.value,
                notes=request.notes.strip(),
                admin_user=request.admin_user,
                idempotency_key=request.idempotency_key,
            )
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)

            logger.info(
                f"Manual {entry.type} adjustment of {entry.amount:.2f} for "
                f"{entry.user_id} by {entry.admin_user or 'unknown'} ({entry.reason_code})"
            )
            return entry, False

        except IntegrityError:
            # A concurrent request with the same key won the insert
            self.db.rollback()
            if request.idempotency_key:
                existing = self._find_by_idempotency_key(
                    request.user_id, request.idempotency_key
                )
                if existing:
                    return existing, True
            raise
        except APIError as e:
            self.db.rollback()
            logger.warning(
                f"Manual adjustment for {request.user_id} rejected: {e.error_code}"
            )
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error adjusting credits for {request.user_id}: {str(e)}")
            raise

    # Spending credit
    def redeem_credit(self, request: CreditRedeemRequest) -> Tuple[CreditLedgerEntry, float]:
        """Spend wallet credit; returns the APPLIED entry and the new balance"""
        try:
            amount = round_money(request.amount)
            balance = self.get_balance(request.user_id)
            if balance < amount:
                raise BusinessRuleError(
                    "INSUFFICIENT_BALANCE",
                    f"Insufficient credit balance ({balance:.2f} available)",
                )

            entry = CreditLedgerEntry(
                user_id=request.user_id,
                amount=-amount,
                type=LedgerEntryType.APPLIED.value,
                reference_id=request.transaction_id,
            )
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)

            new_balance = round_money(balance - amount)
            logger.info(
                f"Applied {amount:.2f} credit for {request.user_id}; balance {new_balance:.2f}"
            )
            return entry, new_balance

        except APIError as e:
            self.db.rollback()
            logger.warning(f"Credit redemption for {request.user_id} rejected: {e.error_code}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error redeeming credit for {request.user_id}: {str(e)}")
            raise

    # Queries
    def get_balance(self, user_id: str) -> float:
        """Signed sum of every entry the user has"""
        total = (
            self.db.query(func.sum(CreditLedgerEntry.amount))
            .filter(CreditLedgerEntry.user_id == user_id)
            .scalar()
        )
        return round_money(total)

    @staticmethod
    def _date_bounds(filters: CreditHistoryFilters) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Inclusive calendar-day range as [start, end + 1 day)"""
        lower = start_of_day(filters.start_date) if filters.start_date else None
        upper = (
            start_of_day(filters.end_date) + timedelta(days=1)
            if filters.end_date
            else None
        )
        return lower, upper

    def get_history(
        self, user_id: str, filters: CreditHistoryFilters
    ) -> List[CreditLedgerEntry]:
        lower, upper = self._date_bounds(filters)

        with log_query_performance("credit_history"):
            query = (
                self.db.query(CreditLedgerEntry)
                .options(joinedload(CreditLedgerEntry.scheme))
                .filter(CreditLedgerEntry.user_id == user_id)
            )
            if lower:
                query = query.filter(CreditLedgerEntry.created_at >= lower)
            if upper:
                query = query.filter(CreditLedgerEntry.created_at < upper)
            if filters.event_type:
                query = query.filter(CreditLedgerEntry.type == filters.event_type.value)
            if filters.scheme_id is not None:
                query = query.filter(CreditLedgerEntry.scheme_id == filters.scheme_id)

            return query.order_by(
                CreditLedgerEntry.created_at.desc(), CreditLedgerEntry.id.desc()
            ).all()

    def get_cost_incurred(self, user_id: str, filters: CreditHistoryFilters) -> float:
        """EARNED credit plus promo discounts for the user, within the date range"""
        lower, upper = self._date_bounds(filters)

        earned = self.db.query(func.sum(CreditLedgerEntry.amount)).filter(
            CreditLedgerEntry.user_id == user_id,
            CreditLedgerEntry.type == LedgerEntryType.EARNED.value,
        )
        discounts = self.db.query(func.sum(PromoRedemption.discount_amount)).filter(
            PromoRedemption.user_id == user_id
        )
        if lower:
            earned = earned.filter(CreditLedgerEntry.created_at >= lower)
            discounts = discounts.filter(PromoRedemption.created_at >= lower)
        if upper:
            earned = earned.filter(CreditLedgerEntry.created_at < upper)
            discounts = discounts.filter(PromoRedemption.created_at < upper)

        return round_money((earned.scalar() or 0.0) + (discounts.scalar() or 0.0))

    def get_summary(self, user_id: str, filters: CreditHistoryFilters) -> Dict[str, Any]:
        """Balance over all entries; history and cost follow the filters"""
        return {
            "user_id": user_id,
            "balance": self.get_balance(user_id),
            "cost_incurred": self.get_cost_incurred(user_id, filters),
            "currency": self.settings.default_credit_currency,
            "history": self.get_history(user_id, filters),
        }
