# backend/modules/bonuses/services/bonus_scheme_service.py

from sqlalchemy.orm import Session
from typing import List
import logging

from core.exceptions import APIError, ConflictError, NotFoundError
from ..models.bonus_models import BonusScheme, CreditLedgerEntry
from ..schemas.bonus_schemas import (
    BonusSchemeBase,
    BonusSchemeCreate,
    BonusSchemeResponse,
    BonusSchemeUpdate,
)

logger = logging.getLogger(__name__)


def scheme_values(scheme_data: BonusSchemeBase) -> dict:
    """Column values for a validated scheme"""
    values = scheme_data.model_dump(mode="json", exclude={"start_date", "end_date"})
    values["start_date"] = scheme_data.start_date
    values["end_date"] = scheme_data.end_date
    return values


class BonusSchemeService:
    """Service for the bonus scheme catalog"""

    def __init__(self, db: Session):
        self.db = db

    def create_scheme(self, scheme_data: BonusSchemeCreate) -> BonusScheme:
        try:
            scheme = BonusScheme(**scheme_values(scheme_data))
            self.db.add(scheme)
            self.db.commit()
            self.db.refresh(scheme)

            logger.info(f"Created bonus scheme: {scheme.name} (ID: {scheme.id})")
            return scheme

        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating bonus scheme: {str(e)}")
            raise

    def get_scheme(self, scheme_id: int) -> BonusScheme:
        scheme = self.db.query(BonusScheme).filter(BonusScheme.id == scheme_id).first()
        if not scheme:
            raise NotFoundError(f"Bonus scheme {scheme_id} not found")
        return scheme

    def list_schemes(self) -> List[BonusScheme]:
        return (
            self.db.query(BonusScheme)
            .order_by(BonusScheme.created_at.desc(), BonusScheme.id.desc())
            .all()
        )

    def update_scheme(self, scheme_id: int, update_data: BonusSchemeUpdate) -> BonusScheme:
        """Apply a partial update and re-validate the whole scheme"""
        try:
            scheme = self.get_scheme(scheme_id)

            current = BonusSchemeResponse.model_validate(scheme).model_dump(
                exclude={"id", "created_at", "updated_at"}
            )
            current.update(update_data.model_dump(exclude_unset=True))
            # Raises pydantic.ValidationError (a ValueError) on bad combinations
            merged = BonusSchemeCreate.model_validate(current)

            for field, value in scheme_values(merged).items():
                setattr(scheme, field, value)

            self.db.commit()
            self.db.refresh(scheme)

            logger.info(f"Updated bonus scheme: {scheme_id}")
            return scheme

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating bonus scheme {scheme_id}: {str(e)}")
            raise

    def delete_scheme(self, scheme_id: int) -> None:
        """Delete a scheme no credit was ever booked against"""
        try:
            scheme = self.get_scheme(scheme_id)
            referenced = (
                self.db.query(CreditLedgerEntry.id)
                .filter(CreditLedgerEntry.scheme_id == scheme_id)
                .first()
            )
            if referenced:
                raise ConflictError(
                    "Bonus scheme has ledger entries; set it INACTIVE instead",
                    "SCHEME_IN_USE",
                )

            self.db.delete(scheme)
            self.db.commit()
            logger.info(f"Deleted bonus scheme: {scheme_id}")

        except APIError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting bonus scheme {scheme_id}: {str(e)}")
            raise
