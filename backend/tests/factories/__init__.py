# backend/tests/factories/__init__.py

"""
Shared test factories for the admin backend.

These factories provide reusable test data generation for all modules.
"""

from .base import BaseFactory, bind_session
from .promotions import PromoCodeFactory, PromoRedemptionFactory, CampaignLogFactory
from .bonuses import BonusSchemeFactory, CreditLedgerEntryFactory
from .referrals import ReferralRuleFactory
from .merchants import (
    MerchantFactory,
    TransactionFactory,
    ForexLogFactory,
    CommissionFactory,
)

__all__ = [
    # Base
    'BaseFactory',
    'bind_session',

    # Promotions
    'PromoCodeFactory',
    'PromoRedemptionFactory',
    'CampaignLogFactory',

    # Bonuses
    'BonusSchemeFactory',
    'CreditLedgerEntryFactory',

    # Referrals
    'ReferralRuleFactory',

    # Merchants
    'MerchantFactory',
    'TransactionFactory',
    'ForexLogFactory',
    'CommissionFactory',
]
