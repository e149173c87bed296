# backend/modules/bonuses/models/__init__.py

from .bonus_models import (
    BonusType,
    CommissionType,
    SchemeStatus,
    LedgerEntryType,
    ReasonCode,
    BonusScheme,
    CreditLedgerEntry,
)

__all__ = [
    "BonusType",
    "CommissionType",
    "SchemeStatus",
    "LedgerEntryType",
    "ReasonCode",
    "BonusScheme",
    "CreditLedgerEntry",
]
