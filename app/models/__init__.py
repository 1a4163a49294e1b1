from .analytics_event import (
    AnalyticsEvent,
    AnalyticsEventInDB,
    AnalyticsStats,
    BrowserViews,
    ChartData,
    ChartDataset,
    ChartType,
    PageViews,
    Period,
    ReferrerViews,
    TimeSeriesPoint,
)

__all__ = [
    "AnalyticsEvent",
    "AnalyticsEventInDB",
    "AnalyticsStats",
    "BrowserViews",
    "ChartData",
    "ChartDataset",
    "ChartType",
    "PageViews",
    "Period",
    "ReferrerViews",
    "TimeSeriesPoint",
]
