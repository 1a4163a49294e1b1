"""
Analytics API endpoints
"""
from fastapi import APIRouter, Depends, Query

from app.models import AnalyticsStats, ChartData, ChartType
from app.services.analytics_stats import get_chart_data, get_stats
from ..deps import get_analytics_repo
from ..models import ErrorResponse

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get("/stats", response_model=AnalyticsStats, responses=ERROR_RESPONSES)
async def analytics_stats(
    period: str = Query("7d", description="24h, 7d, 30d or all; anything else means 7d"),
    repo=Depends(get_analytics_repo),
):
    """
    Aggregated page view statistics
    """
    return await get_stats(repo, period)


@router.get("/charts/{chart_type}", response_model=ChartData, responses=ERROR_RESPONSES)
async def analytics_chart(
    chart_type: ChartType,
    period: str = Query("7d", description="24h, 7d, 30d or all; anything else means 7d"),
    repo=Depends(get_analytics_repo),
):
    """
    Chart.js data for the analytics dashboard
    """
    return await get_chart_data(repo, chart_type, period)
