# backend/modules/promotions/services/promo_store.py

from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional

from ..models.promo_models import PromoCode, PromoRedemption


class SqlPromoStore:
    """PromoStore backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> Optional[PromoCode]:
        return self.db.query(PromoCode).filter(PromoCode.code == code.upper()).first()

    def count_user_redemptions(self, promo_id: int, user_id: str) -> int:
        return (
            self.db.query(func.count(PromoRedemption.id))
            .filter(
                PromoRedemption.promo_code_id == promo_id,
                PromoRedemption.user_id == user_id,
            )
            .scalar()
            or 0
        )
