# backend/tests/factories/promotions.py

from datetime import timedelta

import factory
from factory import LazyFunction, Sequence

from .base import BaseFactory
from core.time_utils import utcnow
from modules.promotions.models.promo_models import (
    CampaignLog,
    DiscountKind,
    PromoCode,
    PromoRedemption,
    PromoStatus,
    UNLIMITED,
)


class PromoCodeFactory(BaseFactory):
    """Active Fixed-value promo valid from yesterday for thirty days."""

    class Meta:
        model = PromoCode

    code = Sequence(lambda n: f"PROMO{n:04d}")
    type = DiscountKind.FIXED.value
    value = 10.0
    min_threshold = 0.0
    max_discount = None
    currency = "USD"
    usage_limit_global = UNLIMITED
    usage_limit_per_user = UNLIMITED
    budget_limit = UNLIMITED
    usage_count = 0
    total_discount_utilized = 0.0
    start_date = LazyFunction(lambda: utcnow() - timedelta(days=1))
    end_date = LazyFunction(lambda: utcnow() + timedelta(days=30))
    status = PromoStatus.ACTIVE.value
    restrictions = LazyFunction(dict)
    user_segment = LazyFunction(lambda: {"type": "all"})


class PromoRedemptionFactory(BaseFactory):
    class Meta:
        model = PromoRedemption

    promo_code = factory.SubFactory(PromoCodeFactory)
    code = factory.SelfAttribute("promo_code.code")
    user_id = Sequence(lambda n: f"user_{n:03d}")
    transaction_id = Sequence(lambda n: f"TXN{n:06d}")
    discount_amount = 10.0


class CampaignLogFactory(BaseFactory):
    class Meta:
        model = CampaignLog

    user_id = Sequence(lambda n: f"user_{n:03d}")
    code = "SAVE20"
    segment = "new_users"
