# backend/modules/bonuses/routers/__init__.py

from .bonus_scheme_router import router as bonus_scheme_router
from .credit_router import router as credit_router

__all__ = ["bonus_scheme_router", "credit_router"]
