# backend/modules/bonuses/__init__.py

from .routers import bonus_scheme_router, credit_router
from .services.bonus_scheme_service import BonusSchemeService
from .services.credit_ledger_service import CreditLedgerService

__all__ = [
    "bonus_scheme_router",
    "credit_router",
    "BonusSchemeService",
    "CreditLedgerService",
]
