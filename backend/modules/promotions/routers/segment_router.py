# backend/modules/promotions/routers/segment_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.database import get_db

from ..schemas.promo_schemas import SegmentSizesResponse
from ..services.campaign_service import CampaignService

router = APIRouter(prefix="/api/segments", tags=["segments"])


@router.get("", response_model=SegmentSizesResponse)
def get_segment_sizes(
    max_tx: int = Query(0, ge=0, description="Most transactions a new user may have"),
    churn_days: int = Query(90, ge=1, description="Days without a transaction to count as churned"),
    db: Session = Depends(get_db),
):
    """Number of users a campaign to each segment would reach"""
    sizes = CampaignService(db).segment_sizes(
        max_transactions=max_tx, inactivity_days=churn_days
    )
    return SegmentSizesResponse(data=sizes)
