# backend/modules/promotions/__init__.py

from .routers import router as promotions_router, segments_router
from .services.promo_code_service import PromoCodeService
from .services.redemption_service import RedemptionService
from .services.campaign_service import CampaignService

__all__ = [
    "promotions_router",
    "segments_router",
    "PromoCodeService",
    "RedemptionService",
    "CampaignService",
]
