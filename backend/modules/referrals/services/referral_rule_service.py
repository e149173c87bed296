# backend/modules/referrals/services/referral_rule_service.py

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging

from core.exceptions import APIError, ConflictError, NotFoundError
from ..models.referral_models import ReferralRule
from ..schemas.referral_schemas import ReferralRuleCreate, ReferralRuleUpdate

logger = logging.getLogger(__name__)


def duplicate_currency(currency: str) -> ConflictError:
    return ConflictError(
        f"A referral rule for {currency} already exists", "DUPLICATE_CURRENCY"
    )


class ReferralRuleService:
    """CRUD for referral rules, one per base currency"""

    def __init__(self, db: Session):
        self.db = db

    def _currency_taken(self, currency: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(ReferralRule.id).filter(
            ReferralRule.base_currency == currency
        )
        if exclude_id is not None:
            query = query.filter(ReferralRule.id != exclude_id)
        return query.first() is not None

    def list_rules(self) -> List[ReferralRule]:
        return self.db.query(ReferralRule).order_by(ReferralRule.base_currency).all()

    def get_rule(self, rule_id: int) -> ReferralRule:
        rule = self.db.query(ReferralRule).filter(ReferralRule.id == rule_id).first()
        if not rule:
            raise NotFoundError(f"Referral rule {rule_id} not found")
        return rule

    def create_rule(self, rule_data: ReferralRuleCreate) -> ReferralRule:
        try:
            if self._currency_taken(rule_data.base_currency):
                raise duplicate_currency(rule_data.base_currency)

            rule = ReferralRule(**rule_data.model_dump(mode="json"))
            self.db.add(rule)
            self.db.commit()
            self.db.refresh(rule)

            logger.info(f"Created referral rule {rule.name} for {rule.base_currency}")
            return rule

        except IntegrityError:
            self.db.rollback()
            raise duplicate_currency(rule_data.base_currency)
        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating referral rule: {str(e)}")
            raise

    def update_rule(self, rule_id: int, update_data: ReferralRuleUpdate) -> ReferralRule:
        try:
            rule = self.get_rule(rule_id)
            changes = update_data.model_dump(mode="json", exclude_unset=True)

            currency = changes.get("base_currency")
            if currency and self._currency_taken(currency, exclude_id=rule_id):
                raise duplicate_currency(currency)

            for field, value in changes.items():
                setattr(rule, field, value)

            self.db.commit()
            self.db.refresh(rule)

            logger.info(f"Updated referral rule {rule_id}")
            return rule

        except IntegrityError:
            self.db.rollback()
            raise duplicate_currency(update_data.base_currency)
        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating referral rule {rule_id}: {str(e)}")
            raise

    def delete_rule(self, rule_id: int) -> None:
        try:
            rule = self.get_rule(rule_id)
            self.db.delete(rule)
            self.db.commit()
            logger.info(f"Deleted referral rule {rule_id}")

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting referral rule {rule_id}: {str(e)}")
            raise
