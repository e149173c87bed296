# backend/modules/referrals/models/referral_models.py

from sqlalchemy import Column, Integer, String, Float, Boolean
from enum import Enum

from core.database import Base
from core.mixins import TimestampMixin


class RewardType(str, Enum):
    """Who gets paid when a referral qualifies"""
    BOTH = "BOTH"
    REFERRER = "REFERRER"
    REFEREE = "REFEREE"


class ReferralRule(Base, TimestampMixin):
    """Referral reward configuration; at most one rule per base currency"""
    __tablename__ = "referral_rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True)
    reward_type = Column(String(20), nullable=False, default=RewardType.BOTH.value)
    base_currency = Column(String(3), nullable=False, unique=True, index=True)
    referrer_reward = Column(Float, nullable=False, default=0.0)
    referee_reward = Column(Float, nullable=False, default=0.0)
    min_transaction_threshold = Column(Float, nullable=False, default=0.0)

    def __repr__(self):
        return f"<ReferralRule(id={self.id}, currency='{self.base_currency}')>"
