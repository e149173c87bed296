# backend/modules/promotions/services/redemption_service.py

from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import Optional, Tuple
import logging

from core.exceptions import APIError, BusinessRuleError, NotFoundError
from core.time_utils import round_money, utcnow
from ..models.promo_models import PromoCode, PromoRedemption, PromoStatus, UNLIMITED
from ..schemas.promo_schemas import PromoRedeemRequest, PromoValidationRequest
from .eligibility import (
    REJECTION_MESSAGES,
    PromoEvaluation,
    PromoRejection,
    TransactionContext,
    evaluate,
)
from .promo_store import SqlPromoStore

logger = logging.getLogger(__name__)


def rejection_error(reason: PromoRejection) -> APIError:
    """HTTP error for a rejected promo code"""
    message = REJECTION_MESSAGES[reason]
    if reason == PromoRejection.NOT_FOUND:
        return NotFoundError(message, reason.value)
    return BusinessRuleError(reason.value, message)


def context_from_request(request: PromoValidationRequest) -> TransactionContext:
    return TransactionContext(
        amount=request.amount,
        currency=request.currency,
        source_currency=request.source_currency,
        dest_currency=request.dest_currency,
        payment_method=request.payment_method,
        user_id=request.user_id,
        affiliate=request.affiliate,
        user_transaction_count=request.user_transaction_count,
        days_since_last_transaction=request.days_since_last_transaction,
    )


class RedemptionService:
    """
    Evaluates promo codes and records their redemption.

    Counters only move through a single conditional UPDATE, so concurrent
    redemptions of a nearly exhausted code cannot overrun its caps.
    """

    def __init__(self, db: Session):
        self.db = db
        self.store = SqlPromoStore(db)

    def validate(self, request: PromoValidationRequest) -> PromoEvaluation:
        """Read-only evaluation; raises on rejection"""
        evaluation = evaluate(self.store, request.code, context_from_request(request))
        if not evaluation.accepted:
            logger.warning(
                f"Promo code {request.code.upper()} rejected: "
                f"{evaluation.rejection.value} ({evaluation.message})"
            )
            raise rejection_error(evaluation.rejection)
        return evaluation

    def _claim(self, promo: PromoCode, discount_amount: float) -> bool:
        """Atomically bump counters if the code is live and its caps still allow this use"""
        now = utcnow()
        updated = (
            self.db.query(PromoCode)
            .filter(
                PromoCode.id == promo.id,
                PromoCode.status == PromoStatus.ACTIVE.value,
                PromoCode.start_date <= now,
                PromoCode.end_date > now,
                or_(
                    PromoCode.usage_limit_global == UNLIMITED,
                    PromoCode.usage_count < PromoCode.usage_limit_global,
                ),
                or_(
                    PromoCode.budget_limit == UNLIMITED,
                    PromoCode.total_discount_utilized + discount_amount
                    <= PromoCode.budget_limit,
                ),
            )
            .update(
                {
                    PromoCode.usage_count: PromoCode.usage_count + 1,
                    PromoCode.total_discount_utilized: PromoCode.total_discount_utilized
                    + discount_amount,
                    PromoCode.version: PromoCode.version + 1,
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    def _claim_failure(self, promo: PromoCode) -> PromoRejection:
        """Work out which guard stopped the conditional update"""
        self.db.refresh(promo)
        if not promo.is_active:
            return PromoRejection.EXPIRED_OR_INACTIVE
        if promo.has_usage_cap and promo.usage_count >= promo.usage_limit_global:
            return PromoRejection.USAGE_CAP_REACHED
        return PromoRejection.BUDGET_CAP_REACHED

    def _record(
        self,
        promo: PromoCode,
        discount_amount: float,
        user_id: Optional[str],
        transaction_id: Optional[str],
    ) -> Tuple[PromoCode, PromoRedemption]:
        discount_amount = round_money(discount_amount)

        if not self._claim(promo, discount_amount):
            reason = self._claim_failure(promo)
            logger.warning(f"Promo code {promo.code} commit refused: {reason.value}")
            raise rejection_error(reason)

        redemption = PromoRedemption(
            promo_code_id=promo.id,
            code=promo.code,
            transaction_id=transaction_id,
            user_id=user_id,
            discount_amount=discount_amount,
        )
        self.db.add(redemption)
        self.db.commit()
        self.db.refresh(promo)
        self.db.refresh(redemption)

        logger.info(
            f"Redeemed promo code {promo.code}: discount {discount_amount:.2f}, "
            f"usage {promo.usage_count}, utilized {promo.total_discount_utilized:.2f}"
        )
        return promo, redemption

    def commit(
        self,
        code: str,
        discount_amount: float,
        user_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Tuple[PromoCode, PromoRedemption]:
        """Record one use of an already evaluated code"""
        try:
            promo = self.store.get_by_code(code)
            if not promo:
                raise rejection_error(PromoRejection.NOT_FOUND)
            return self._record(promo, discount_amount, user_id, transaction_id)

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error committing promo code {code}: {str(e)}")
            raise

    def redeem(
        self, request: PromoRedeemRequest
    ) -> Tuple[PromoEvaluation, PromoCode, PromoRedemption]:
        """Evaluate and commit in one database transaction"""
        try:
            evaluation = self.validate(request)
            promo, redemption = self._record(
                evaluation.promo,
                evaluation.discount_amount,
                request.user_id,
                request.transaction_id,
            )
            return evaluation, promo, redemption

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error redeeming promo code {request.code}: {str(e)}")
            raise
