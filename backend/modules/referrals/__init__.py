# backend/modules/referrals/__init__.py

from .routers.referral_rule_router import router as referral_rules_router
from .services.referral_rule_service import ReferralRuleService

__all__ = ["referral_rules_router", "ReferralRuleService"]
