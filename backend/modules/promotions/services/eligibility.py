# backend/modules/promotions/services/eligibility.py

"""
Promo code eligibility rules.

Everything here is a pure function of a promo definition, a transaction
context and the current time. Storage is reached only through the small
``PromoStore`` protocol, so the rules can be exercised against an in-memory
fake as easily as against the SQLAlchemy-backed store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Protocol

from core.time_utils import round_money, utcnow
from ..models.promo_models import DiscountKind, PromoStatus, UNLIMITED
from ..schemas.promo_schemas import (
    ChurnedUsersSegment,
    NewUsersSegment,
    PromoRestrictions,
    TargetedSegment,
    parse_user_segment,
)


class PromoRejection(str, Enum):
    """Why a promo code was not applicable, in evaluation order"""

    NOT_FOUND = "NOT_FOUND"
    EXPIRED_OR_INACTIVE = "EXPIRED_OR_INACTIVE"
    USAGE_CAP_REACHED = "USAGE_CAP_REACHED"
    BUDGET_CAP_REACHED = "BUDGET_CAP_REACHED"
    PER_USER_CAP_REACHED = "PER_USER_CAP_REACHED"
    BELOW_THRESHOLD = "BELOW_THRESHOLD"
    CORRIDOR_NOT_ALLOWED = "CORRIDOR_NOT_ALLOWED"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    AFFILIATE_NOT_ALLOWED = "AFFILIATE_NOT_ALLOWED"
    SEGMENT_NOT_ELIGIBLE = "SEGMENT_NOT_ELIGIBLE"


REJECTION_MESSAGES = {
    PromoRejection.NOT_FOUND: "Invalid promo code",
    PromoRejection.EXPIRED_OR_INACTIVE: "Promo code is expired or inactive",
    PromoRejection.USAGE_CAP_REACHED: "Promo code usage limit reached",
    PromoRejection.BUDGET_CAP_REACHED: "Promo code budget exhausted",
    PromoRejection.PER_USER_CAP_REACHED: "Promo code already used the maximum number of times by this user",
    PromoRejection.BELOW_THRESHOLD: "Transaction amount is below the promo minimum",
    PromoRejection.CORRIDOR_NOT_ALLOWED: "Promo code is not valid for this corridor",
    PromoRejection.METHOD_NOT_ALLOWED: "Promo code is not valid for this payment method",
    PromoRejection.AFFILIATE_NOT_ALLOWED: "Promo code is not valid for this affiliate",
    PromoRejection.SEGMENT_NOT_ELIGIBLE: "User is not in the promo code's target segment",
}


@dataclass
class TransactionContext:
    """The proposed transfer a promo code is evaluated against"""

    amount: float
    currency: Optional[str] = None
    source_currency: Optional[str] = None
    dest_currency: Optional[str] = None
    payment_method: Optional[str] = None
    user_id: Optional[str] = None
    affiliate: Optional[str] = None
    user_transaction_count: Optional[int] = None
    days_since_last_transaction: Optional[int] = None

    @property
    def corridor(self) -> str:
        return f"{self.source_currency or ''}-{self.dest_currency or ''}".upper()


@dataclass
class DiscountOutcome:
    discount_amount: float = 0.0
    fee_waived: bool = False
    rate_boost: Optional[float] = None
    bonus_credit: Optional[float] = None


@dataclass
class PromoEvaluation:
    """Result of evaluating one code; exactly one of promo/rejection is meaningful"""

    accepted: bool
    promo: Any = None
    rejection: Optional[PromoRejection] = None
    outcome: Optional[DiscountOutcome] = None
    display_text: str = ""

    @property
    def discount_amount(self) -> float:
        return self.outcome.discount_amount if self.outcome else 0.0

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES.get(self.rejection, "") if self.rejection else ""

    @classmethod
    def reject(cls, reason: PromoRejection, promo: Any = None) -> "PromoEvaluation":
        return cls(accepted=False, promo=promo, rejection=reason)


class PromoStore(Protocol):
    """Read access the evaluator needs"""

    def get_by_code(self, code: str) -> Any:
        ...

    def count_user_redemptions(self, promo_id: int, user_id: str) -> int:
        ...


def compute_discount(promo: Any, amount: float) -> DiscountOutcome:
    """Translate a promo definition into its effect on a transfer of ``amount``"""
    kind = DiscountKind(promo.type)
    value = float(promo.value or 0.0)

    if kind == DiscountKind.FIXED:
        return DiscountOutcome(discount_amount=round_money(value))

    if kind == DiscountKind.PERCENTAGE:
        discount = amount * value / 100
        if promo.max_discount is not None:
            discount = min(discount, float(promo.max_discount))
        return DiscountOutcome(discount_amount=round_money(discount))

    if kind == DiscountKind.FEE_WAIVER:
        return DiscountOutcome(fee_waived=True)

    if kind == DiscountKind.FX_BOOST:
        return DiscountOutcome(rate_boost=value)

    return DiscountOutcome(bonus_credit=value)


def display_text(promo: Any, outcome: DiscountOutcome) -> str:
    """Short customer-facing description of an accepted promo"""
    kind = DiscountKind(promo.type)
    prefix = f"{promo.currency} " if promo.currency else ""

    if kind == DiscountKind.PERCENTAGE:
        return f"{float(promo.value)}% off ({prefix}{outcome.discount_amount:.2f} saved)"
    if kind == DiscountKind.FIXED:
        return f"{prefix}{outcome.discount_amount:.2f} off"
    if kind == DiscountKind.FX_BOOST:
        return f"+{float(promo.value)} rate boost"
    if kind == DiscountKind.FEE_WAIVER:
        return "Fee waived"
    return f"{prefix}{float(promo.value)} bonus credit"


def _within_window(promo: Any, now: datetime) -> bool:
    return (
        promo.status == PromoStatus.ACTIVE.value
        and promo.start_date <= now < promo.end_date
    )


def _segment_allows(promo: Any, context: TransactionContext) -> bool:
    segment = parse_user_segment(promo.user_segment)

    if isinstance(segment, TargetedSegment):
        return context.user_id is not None and context.user_id == segment.user_id
    if isinstance(segment, NewUsersSegment):
        return (
            context.user_transaction_count is None
            or context.user_transaction_count <= segment.max_transactions
        )
    if isinstance(segment, ChurnedUsersSegment):
        return (
            context.days_since_last_transaction is None
            or context.days_since_last_transaction >= segment.inactivity_days
        )
    return True


def _listed(value: Optional[str], allowed: List[str], case_insensitive: bool = False) -> bool:
    if not allowed:
        return True
    if value is None:
        return False
    if case_insensitive:
        return value.upper() in {item.upper() for item in allowed}
    return value in allowed


def check_promo(
    promo: Any,
    context: TransactionContext,
    now: datetime,
    user_redemption_count: int = 0,
) -> Optional[PromoRejection]:
    """Run every rule in order and return the first failure, or None"""
    if not _within_window(promo, now):
        return PromoRejection.EXPIRED_OR_INACTIVE

    if promo.usage_limit_global != UNLIMITED and promo.usage_count >= promo.usage_limit_global:
        return PromoRejection.USAGE_CAP_REACHED

    if promo.budget_limit != UNLIMITED and promo.total_discount_utilized >= promo.budget_limit:
        return PromoRejection.BUDGET_CAP_REACHED

    if (
        context.user_id
        and promo.usage_limit_per_user != UNLIMITED
        and user_redemption_count >= promo.usage_limit_per_user
    ):
        return PromoRejection.PER_USER_CAP_REACHED

    if context.amount < (promo.min_threshold or 0.0):
        return PromoRejection.BELOW_THRESHOLD

    restrictions = PromoRestrictions.model_validate(promo.restrictions or {})

    if restrictions.corridors and context.corridor not in restrictions.corridors:
        return PromoRejection.CORRIDOR_NOT_ALLOWED

    if not _listed(context.payment_method, restrictions.payment_methods, case_insensitive=True):
        return PromoRejection.METHOD_NOT_ALLOWED

    if not _listed(context.affiliate, restrictions.affiliates):
        return PromoRejection.AFFILIATE_NOT_ALLOWED

    if not _segment_allows(promo, context):
        return PromoRejection.SEGMENT_NOT_ELIGIBLE

    return None


def evaluate(
    store: PromoStore,
    code: str,
    context: TransactionContext,
    now: Optional[datetime] = None,
) -> PromoEvaluation:
    """
    Decide whether ``code`` applies to ``context`` and compute its effect.

    Read-only: counters are only moved by the redemption commit.
    """
    now = now or utcnow()
    promo = store.get_by_code(code.strip().upper())
    if promo is None:
        return PromoEvaluation.reject(PromoRejection.NOT_FOUND)

    user_redemptions = 0
    if context.user_id:
        user_redemptions = store.count_user_redemptions(promo.id, context.user_id)

    rejection = check_promo(promo, context, now, user_redemptions)
    if rejection is not None:
        return PromoEvaluation.reject(rejection, promo)

    outcome = compute_discount(promo, context.amount)

    # The budget must cover this discount in full, not just have room left
    if (
        promo.budget_limit != UNLIMITED
        and promo.total_discount_utilized + outcome.discount_amount > promo.budget_limit
    ):
        return PromoEvaluation.reject(PromoRejection.BUDGET_CAP_REACHED, promo)

    return PromoEvaluation(
        accepted=True,
        promo=promo,
        outcome=outcome,
        display_text=display_text(promo, outcome),
    )
