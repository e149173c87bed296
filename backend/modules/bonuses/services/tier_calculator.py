# backend/modules/bonuses/services/tier_calculator.py

"""
Bonus amount calculation.

Pure functions over plain values: nothing here touches the database, so the
award rules can be tested directly.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from core.time_utils import round_money


class AwardCalculationError(Exception):
    """Base class for amount calculation failures"""

    error_code = "AWARD_FAILED"


class TierMismatchError(AwardCalculationError):
    """No tier covers the transaction amount"""

    error_code = "TIER_MISMATCH"


class TransactionRequiredError(AwardCalculationError):
    """The scheme needs a transaction amount and none was supplied"""

    error_code = "TRANSACTION_REQUIRED"


@dataclass(frozen=True)
class Tier:
    min: float
    max: Optional[float]
    value: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tier":
        upper = data.get("max")
        return cls(
            min=float(data.get("min") or 0.0),
            max=None if upper is None else float(upper),
            value=float(data.get("value") or 0.0),
        )

    def contains(self, amount: float) -> bool:
        return self.min <= amount and (self.max is None or amount <= self.max)


def check_tier_table(tiers: Sequence[Tier]) -> None:
    """
    Raise ValueError unless tiers are sorted by min and non-overlapping

    Both bounds are inclusive and only the last tier may be open-ended.
    """
    previous = None
    for index, tier in enumerate(tiers):
        if tier.min < 0:
            raise ValueError(f"Tier {index + 1}: min cannot be negative")
        if tier.max is not None and tier.max < tier.min:
            raise ValueError(f"Tier {index + 1}: max must be >= min")
        if tier.max is None and index != len(tiers) - 1:
            raise ValueError("Only the last tier may be open-ended")
        if previous is not None and tier.min <= previous.max:
            raise ValueError(
                f"Tier {index + 1} overlaps or is out of order with tier {index}"
            )
        previous = tier


def find_tier(tiers: Sequence[Tier], amount: float) -> Optional[Tier]:
    """The single tier covering ``amount``, or None"""
    for tier in tiers:
        if tier.contains(amount):
            return tier
    return None


def calculate_award(
    commission_type: str,
    credit_amount: float,
    commission_percentage: Optional[float],
    is_tiered: bool,
    tiers: Sequence[Tier],
    transaction_amount: Optional[float] = None,
) -> float:
    """
    Credit earned under a scheme

    Args:
        commission_type: FIXED or PERCENTAGE
        credit_amount: flat award for non-tiered FIXED schemes
        commission_percentage: rate for non-tiered PERCENTAGE schemes
        is_tiered: whether tiers apply
        tiers: tier table, sorted by min
        transaction_amount: amount of the qualifying transaction, if any

    Raises:
        TransactionRequiredError: percentage or tiered scheme without an amount
        TierMismatchError: tiered scheme and no tier covers the amount
    """
    percentage = commission_type == "PERCENTAGE"

    if not is_tiered and not percentage:
        return round_money(credit_amount)

    if transaction_amount is None:
        raise TransactionRequiredError(
            "This scheme needs a transaction to calculate the award"
        )

    if not is_tiered:
        return round_money(transaction_amount * (commission_percentage or 0.0) / 100)

    tier = find_tier(tiers, transaction_amount)
    if tier is None:
        raise TierMismatchError(
            f"No tier matches transaction amount {transaction_amount:.2f}"
        )

    if percentage:
        return round_money(transaction_amount * tier.value / 100)
    return round_money(tier.value)
