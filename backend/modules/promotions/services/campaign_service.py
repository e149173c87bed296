# backend/modules/promotions/services/campaign_service.py

from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import timedelta
from typing import Dict, List, Tuple
import logging

from core.exceptions import APIError, NotFoundError
from core.time_utils import utcnow
from modules.merchants.models.merchant_models import Merchant, Transaction
from ..models.promo_models import CampaignLog, PromoCode
from ..schemas.promo_schemas import PromoDistributeRequest
from .promo_code_service import PromoCodeService

logger = logging.getLogger(__name__)


class CampaignService:
    """Distributes promo codes to a user segment and logs every send"""

    def __init__(self, db: Session):
        self.db = db
        self.promo_codes = PromoCodeService(db)

    def resolve_targets(self, request: PromoDistributeRequest) -> List[str]:
        """Explicit user ids, or every merchant when none are given"""
        if request.user_ids:
            return list(dict.fromkeys(request.user_ids))
        return [merchant_id for (merchant_id,) in self.db.query(Merchant.id).all()]

    def segment_sizes(
        self, max_transactions: int = 0, inactivity_days: int = 90
    ) -> Dict[str, int]:
        """
        Count merchants in each campaign segment

        New users have at most ``max_transactions`` transactions. Churned
        users have transacted before but not within ``inactivity_days``.
        """
        cutoff = utcnow() - timedelta(days=inactivity_days)
        rows = (
            self.db.query(
                Merchant.id,
                func.count(Transaction.id),
                func.max(Transaction.debit_date),
            )
            .outerjoin(Transaction, Transaction.merchant_id == Merchant.id)
            .group_by(Merchant.id)
            .all()
        )

        new_users = sum(1 for _, count, _ in rows if count <= max_transactions)
        churned_users = sum(
            1 for _, count, last in rows if count > 0 and last < cutoff
        )
        return {"new_users": new_users, "churned_users": churned_users}

    def distribute(self, request: PromoDistributeRequest) -> Tuple[List[str], List[str]]:
        """
        Send a promo code to each target user

        With ``existing_code`` every target receives that code. With
        ``promo_config`` each target receives a fresh single-use code that
        only they can redeem.

        Returns:
            (targets, codes) in send order
        """
        try:
            targets = self.resolve_targets(request)
            codes = []

            shared = None
            if request.existing_code:
                shared = (
                    self.db.query(PromoCode)
                    .filter(PromoCode.code == request.existing_code.strip().upper())
                    .first()
                )
                if not shared:
                    raise NotFoundError(
                        f"Promo code {request.existing_code} not found"
                    )

            for user_id in targets:
                if shared:
                    code = shared.code
                else:
                    config = request.promo_config
                    promo = self.promo_codes.build_promo_code(
                        self.promo_codes.generate_code(config.prefix),
                        config,
                        usage_limit_global=1,
                        usage_limit_per_user=1,
                        user_segment={"type": "targeted", "user_id": user_id},
                    )
                    self.db.add(promo)
                    self.db.flush()
                    code = promo.code

                self.db.add(
                    CampaignLog(user_id=user_id, code=code, segment=request.segment)
                )
                codes.append(code)

            self.db.commit()
            logger.info(
                f"Distributed {len(codes)} promo codes to segment {request.segment}"
            )
            return targets, codes

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error distributing promo codes: {str(e)}")
            raise
