# backend/modules/promotions/tests/conftest.py

import pytest

from modules.promotions.models.promo_models import DiscountKind
from modules.promotions.services.campaign_service import CampaignService
from modules.promotions.services.promo_code_service import PromoCodeService
from modules.promotions.services.redemption_service import RedemptionService
from tests.factories import PromoCodeFactory


@pytest.fixture
def promo_code_service(db_session):
    return PromoCodeService(db_session)


@pytest.fixture
def redemption_service(db_session):
    return RedemptionService(db_session)


@pytest.fixture
def campaign_service(db_session):
    return CampaignService(db_session)


@pytest.fixture
def save20(db_session):
    """20% off transfers of 100 or more, like the portal's SAVE20 code"""
    return PromoCodeFactory(
        code="SAVE20",
        type=DiscountKind.PERCENTAGE.value,
        value=20.0,
        min_threshold=100.0,
        currency="USD",
        usage_limit_global=1000,
        usage_count=45,
    )
