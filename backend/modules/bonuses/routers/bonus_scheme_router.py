# backend/modules/bonuses/routers/bonus_scheme_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db

from ..schemas.bonus_schemas import (
    BonusSchemeCreate,
    BonusSchemeCreated,
    BonusSchemeList,
    BonusSchemeResponse,
    BonusSchemeUpdate,
)
from ..services.bonus_scheme_service import BonusSchemeService

router = APIRouter(prefix="/api/bonus-schemes", tags=["bonus-schemes"])


@router.get("", response_model=BonusSchemeList)
def list_bonus_schemes(db: Session = Depends(get_db)):
    """List all bonus schemes, newest first"""
    return BonusSchemeList(data=BonusSchemeService(db).list_schemes())


@router.post("", response_model=BonusSchemeCreated)
def create_bonus_scheme(scheme_data: BonusSchemeCreate, db: Session = Depends(get_db)):
    """Create a bonus scheme"""
    scheme = BonusSchemeService(db).create_scheme(scheme_data)
    return BonusSchemeCreated(id=scheme.id)


@router.get("/{scheme_id}", response_model=BonusSchemeResponse)
def get_bonus_scheme(scheme_id: int, db: Session = Depends(get_db)):
    return BonusSchemeService(db).get_scheme(scheme_id)


@router.put("/{scheme_id}", response_model=BonusSchemeResponse)
def update_bonus_scheme(
    scheme_id: int, update_data: BonusSchemeUpdate, db: Session = Depends(get_db)
):
    """Update a bonus scheme; omitted fields keep their current values"""
    return BonusSchemeService(db).update_scheme(scheme_id, update_data)


@router.delete("/{scheme_id}")
def delete_bonus_scheme(scheme_id: int, db: Session = Depends(get_db)):
    BonusSchemeService(db).delete_scheme(scheme_id)
    return {"success": True}
