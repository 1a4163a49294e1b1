"""
Analytics statistics service
Aggregates stored page views into dashboard stats and chart data
"""
import asyncio
from typing import Optional

from app.core.errors import ValidationError
from app.models import AnalyticsStats, ChartData, ChartDataset
from app.repositories.analytics_events import AnalyticsEventRepository

PERIOD_DAYS = {
    "24h": 1,
    "7d": 7,
    "30d": 30,
}
DEFAULT_DAYS = 7
# charts need a bounded window even for "all"
CHART_ALL_DAYS = 365

LINE_COLOR = "rgb(59, 130, 246)"
BLUE = "rgba(59, 130, 246, 0.8)"
GREEN = "rgba(16, 185, 129, 0.8)"
BROWSER_COLORS = [
    BLUE,
    GREEN,
    "rgba(245, 158, 11, 0.8)",
    "rgba(239, 68, 68, 0.8)",
    "rgba(139, 92, 246, 0.8)",
]


def parse_period(period: str) -> Optional[int]:
    """Days covered by a period; None means all time"""
    if period == "all":
        return None
    return PERIOD_DAYS.get(period, DEFAULT_DAYS)


async def get_stats(repo: AnalyticsEventRepository, period: str = "7d") -> AnalyticsStats:
    """
    Get aggregated analytics statistics for a period

    Args:
        repo: Analytics event repository
        period: '24h', '7d', '30d' or 'all'; anything else means 7 days

    Returns:
        AnalyticsStats (unique visitors is 0 for 'all')
    """
    if period not in ("24h", "7d", "30d", "all"):
        period = "7d"
    days = parse_period(period)

    async def _unique() -> int:
        return await repo.unique_visitors(days) if days else 0

    total_views, unique_visitors, top_pages, browsers, referrers = await asyncio.gather(
        repo.total_views(days),
        _unique(),
        repo.top_pages(10, days),
        repo.browser_stats(days),
        repo.referrer_stats(10, days),
    )

    return AnalyticsStats(
        total_views=total_views,
        unique_visitors=unique_visitors,
        top_pages=top_pages,
        browsers=browsers,
        referrers=referrers,
        period=period,
    )


async def get_chart_data(
    repo: AnalyticsEventRepository,
    chart_type: str,
    period: str = "7d"
) -> ChartData:
    """Chart.js-shaped data for one of: timeseries, topPages, browsers, referrers"""
    days = parse_period(period) or CHART_ALL_DAYS

    if chart_type == "timeseries":
        points = await repo.time_series(days, "hour" if period == "24h" else "day")
        return ChartData(
            labels=[p.timestamp for p in points],
            datasets=[ChartDataset(
                label="Page Views",
                data=[p.views for p in points],
                border_color=LINE_COLOR,
                background_color="rgba(59, 130, 246, 0.1)",
                border_width=2,
            )],
        )

    if chart_type == "topPages":
        pages = await repo.top_pages(10, days)
        return ChartData(
            labels=[p.path for p in pages],
            datasets=[ChartDataset(
                label="Views",
                data=[p.views for p in pages],
                background_color=BLUE,
            )],
        )

    if chart_type == "browsers":
        browsers = await repo.browser_stats(days)
        return ChartData(
            labels=[b.browser for b in browsers],
            datasets=[ChartDataset(
                label="Browser Usage",
                data=[b.views for b in browsers],
                background_color=BROWSER_COLORS[:len(browsers)],
            )],
        )

    if chart_type == "referrers":
        referrers = await repo.referrer_stats(10, days)
        return ChartData(
            labels=[r.referrer for r in referrers],
            datasets=[ChartDataset(
                label="Traffic Sources",
                data=[r.views for r in referrers],
                background_color=GREEN,
            )],
        )

    raise ValidationError(
        f"Unknown chart type: {chart_type}",
        details={"allowed": ["timeseries", "topPages", "browsers", "referrers"]}
    )
