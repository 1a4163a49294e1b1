import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

# Keep tests off any developer .env / real backends
os.environ.setdefault("STARTER_CACHE_BACKEND", "memory")

from app.core.cache import InMemoryCache  # noqa: E402
from app.models import AnalyticsEvent  # noqa: E402


def make_event(path: str = "/", ip: str = "192.168.1.0", **overrides) -> AnalyticsEvent:
    data = {
        "anonymized_ip": ip,
        "user_agent": "Mozilla/5.0",
        "path": path,
        "referer": None,
        "timestamp": datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return AnalyticsEvent(**data)


class FakeRepository:
    """Stands in for AnalyticsEventRepository; every query is an AsyncMock"""

    def __init__(self):
        self.insert_many = AsyncMock(return_value=[])
        self.total_views = AsyncMock(return_value=0)
        self.unique_visitors = AsyncMock(return_value=0)
        self.top_pages = AsyncMock(return_value=[])
        self.browser_stats = AsyncMock(return_value=[])
        self.referrer_stats = AsyncMock(return_value=[])
        self.time_series = AsyncMock(return_value=[])

    @property
    def inserted(self):
        return [event for call in self.insert_many.await_args_list for event in call.args[0]]


@pytest.fixture
def cache():
    return InMemoryCache(cleanup_interval_ms=0)


@pytest.fixture
def persist():
    return AsyncMock(return_value=[])


@pytest.fixture
def fake_repo():
    return FakeRepository()
