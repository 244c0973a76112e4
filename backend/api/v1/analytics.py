"""Usage analytics API endpoints."""

from fastapi import APIRouter, Depends

from core.persistence import AnalyticsTracker
from backend.dependencies import get_analytics
from .schemas import AnalyticsResponse

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsResponse)
def get_analytics_overview(analytics: AnalyticsTracker = Depends(get_analytics)):
    return AnalyticsResponse(**analytics.overall_stats())


@router.delete("", status_code=204)
def clear_analytics(analytics: AnalyticsTracker = Depends(get_analytics)):
    analytics.clear()
