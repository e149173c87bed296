# backend/modules/promotions/routers/__init__.py

from .promo_code_router import router
from .segment_router import router as segments_router

__all__ = ["router", "segments_router"]
