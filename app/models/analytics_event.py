"""
Analytics models
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field

Period = Literal["24h", "7d", "30d", "all"]
ChartType = Literal["timeseries", "topPages", "browsers", "referrers"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsEvent(BaseModel):
    """A single anonymized page view, as captured by the collector"""
    anonymized_ip: str
    user_agent: str
    path: str
    referer: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


class AnalyticsEventInDB(AnalyticsEvent):
    id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PageViews(BaseModel):
    path: str
    views: int


class BrowserViews(BaseModel):
    browser: str
    views: int


class ReferrerViews(BaseModel):
    referrer: str
    views: int


class TimeSeriesPoint(BaseModel):
    timestamp: str
    views: int


class AnalyticsStats(BaseModel):
    total_views: int
    unique_visitors: int
    top_pages: List[PageViews]
    browsers: List[BrowserViews]
    referrers: List[ReferrerViews]
    period: Period


class ChartDataset(BaseModel):
    label: str
    data: List[int]
    background_color: Optional[Union[str, List[str]]] = None
    border_color: Optional[str] = None
    border_width: Optional[int] = None


class ChartData(BaseModel):
    """Labels plus datasets, shaped for Chart.js"""
    labels: List[str]
    datasets: List[ChartDataset]
