# backend/modules/promotions/services/promo_code_service.py

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func
from typing import Optional, List, Tuple
from datetime import datetime
import secrets
import logging

from core.config import get_settings
from core.exceptions import APIError, ConflictError, NotFoundError, ValidationError
from ..models.promo_models import CampaignLog, PromoCode, PromoRedemption, PromoStatus
from ..schemas.promo_schemas import (
    PromoBulkGenerateRequest,
    PromoCodeBase,
    PromoCodeCreate,
)

logger = logging.getLogger(__name__)


class PromoCodeService:
    """Service for the promo code catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def generate_code(self, prefix: Optional[str] = None) -> str:
        """
        Generate an unused code of the form PREFIX-XXXXXXXX

        The random part is upper-case hex of ``promo_code_length`` characters.
        """
        length = self.settings.promo_code_length
        max_attempts = 100

        for _ in range(max_attempts):
            random_part = secrets.token_hex((length + 1) // 2)[:length].upper()
            code = f"{prefix.upper()}-{random_part}" if prefix else random_part
            exists = self.db.query(PromoCode.id).filter(PromoCode.code == code).first()
            if not exists:
                return code

        raise ValueError(
            f"Could not generate unique promo code after {max_attempts} attempts"
        )

    def build_promo_code(self, code: str, config: PromoCodeBase, **overrides) -> PromoCode:
        """Build an unsaved PromoCode from a validated configuration"""
        data = config.model_dump(
            exclude={"code", "user_segment_criteria", "prefix"},
        )
        data.update(overrides)
        data["type"] = config.type.value
        return PromoCode(code=code, **data)

    def create_promo_code(self, promo_data: PromoCodeCreate) -> PromoCode:
        """Create a single promo code"""
        try:
            existing = (
                self.db.query(PromoCode.id)
                .filter(PromoCode.code == promo_data.code)
                .first()
            )
            if existing:
                raise ConflictError("Promo code already exists", "DUPLICATE_CODE")

            promo = self.build_promo_code(promo_data.code, promo_data)
            self.db.add(promo)
            self.db.commit()
            self.db.refresh(promo)

            logger.info(f"Created promo code: {promo.code} (ID: {promo.id})")
            return promo

        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Promo code already exists", "DUPLICATE_CODE")
        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating promo code {promo_data.code}: {str(e)}")
            raise

    def generate_promo_codes(self, request: PromoBulkGenerateRequest) -> List[PromoCode]:
        """Create ``batch_size`` codes sharing one configuration"""
        if request.batch_size > self.settings.promo_bulk_max_batch:
            raise ValidationError(
                f"Maximum {self.settings.promo_bulk_max_batch} promo codes per batch"
            )

        try:
            promos = []
            for _ in range(request.batch_size):
                promo = self.build_promo_code(
                    self.generate_code(request.prefix), request.config
                )
                # Flush so the next uniqueness check sees this code
                self.db.add(promo)
                self.db.flush()
                promos.append(promo)

            self.db.commit()
            logger.info(
                f"Generated {len(promos)} promo codes with prefix {request.prefix or '-'}"
            )
            return promos

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error generating promo codes: {str(e)}")
            raise

    def get_promo_code(self, promo_id: int) -> PromoCode:
        promo = self.db.query(PromoCode).filter(PromoCode.id == promo_id).first()
        if not promo:
            raise NotFoundError(f"Promo code {promo_id} not found")
        return promo

    def list_promo_codes(self) -> List[Tuple[PromoCode, Optional[datetime]]]:
        """All promo codes, latest start first, with their latest campaign send time"""
        last_sent = (
            self.db.query(
                CampaignLog.code.label("code"),
                func.max(CampaignLog.sent_at).label("last_campaign_sent"),
            )
            .group_by(CampaignLog.code)
            .subquery()
        )

        rows = (
            self.db.query(PromoCode, last_sent.c.last_campaign_sent)
            .outerjoin(last_sent, last_sent.c.code == PromoCode.code)
            .order_by(PromoCode.start_date.desc(), PromoCode.id.desc())
            .all()
        )
        return [(promo, sent_at) for promo, sent_at in rows]

    def last_campaign_sent(self, code: str) -> Optional[datetime]:
        return (
            self.db.query(func.max(CampaignLog.sent_at))
            .filter(CampaignLog.code == code)
            .scalar()
        )

    def update_status(self, promo_id: int, status: PromoStatus) -> PromoCode:
        """Enable or disable a promo code"""
        try:
            promo = self.get_promo_code(promo_id)
            promo.status = status.value
            self.db.commit()
            self.db.refresh(promo)

            logger.info(f"Promo code {promo.code} status set to {promo.status}")
            return promo

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating promo code {promo_id} status: {str(e)}")
            raise

    def delete_promo_code(self, promo_id: int) -> None:
        """Delete a promo code that was never redeemed"""
        try:
            promo = self.get_promo_code(promo_id)
            redeemed = (
                self.db.query(PromoRedemption.id)
                .filter(PromoRedemption.promo_code_id == promo_id)
                .first()
            )
            if redeemed:
                raise ConflictError(
                    "Promo code has redemptions; disable it instead", "PROMO_IN_USE"
                )

            self.db.delete(promo)
            self.db.commit()
            logger.info(f"Deleted promo code: {promo.code} (ID: {promo_id})")

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting promo code {promo_id}: {str(e)}")
            raise

    def list_redemptions(self, promo_id: int) -> List[PromoRedemption]:
        self.get_promo_code(promo_id)
        return (
            self.db.query(PromoRedemption)
            .filter(PromoRedemption.promo_code_id == promo_id)
            .order_by(PromoRedemption.created_at.desc(), PromoRedemption.id.desc())
            .all()
        )
