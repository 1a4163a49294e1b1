"""
Analytics event repository for MongoDB operations
"""
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pymongo import ASCENDING, DESCENDING

from app.core.decorators import handle_db_errors
from app.models import (
    AnalyticsEvent,
    AnalyticsEventInDB,
    BrowserViews,
    PageViews,
    ReferrerViews,
    TimeSeriesPoint,
)

GroupBy = Literal["hour", "day"]

_DATE_FORMATS = {
    "hour": "%Y-%m-%d %H:00:00",
    "day": "%Y-%m-%d",
}


def extract_browser(user_agent: str) -> str:
    """Rough browser family from a user agent string"""
    ua = user_agent.lower()
    if "edg/" in ua:
        return "Edge"
    if "opr/" in ua or "opera/" in ua:
        return "Opera"
    if "chrome/" in ua:
        return "Chrome"
    if "firefox/" in ua:
        return "Firefox"
    if "safari/" in ua:
        return "Safari"
    return "Other"


def since(days: Optional[int]) -> Dict[str, Any]:
    """Mongo filter for events in the last ``days`` days (all time if None)"""
    if not days:
        return {}
    start = datetime.now(timezone.utc) - timedelta(days=days)
    return {"timestamp": {"$gte": start}}


class AnalyticsEventRepository:
    def __init__(self, collection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("timestamp", ASCENDING)], name="timestamp")
        await self.collection.create_index([("path", ASCENDING)], name="path")
        await self.collection.create_index(
            [("timestamp", ASCENDING), ("path", ASCENDING)], name="timestamp_path"
        )

    @handle_db_errors
    async def insert_many(self, events: List[AnalyticsEvent]) -> List[AnalyticsEventInDB]:
        """Bulk insert events; an empty batch is a no-op"""
        if not events:
            return []

        created_at = datetime.now(timezone.utc)
        documents = [{**event.model_dump(), "created_at": created_at} for event in events]
        result = await self.collection.insert_many(documents, ordered=True)

        return [
            AnalyticsEventInDB(id=str(inserted_id), **document)
            for document, inserted_id in zip(documents, result.inserted_ids)
        ]

    @handle_db_errors
    async def get_for_period(self, days: int) -> List[dict]:
        """Raw events from the last ``days`` days, newest first"""
        cursor = self.collection.find(since(days)).sort("timestamp", DESCENDING)
        return await cursor.to_list(None)

    async def _aggregate(self, pipeline: List[Dict]) -> List[dict]:
        cursor = self.collection.aggregate(pipeline)
        return await cursor.to_list(None)

    @handle_db_errors
    async def top_pages(self, limit: int = 10, days: Optional[int] = None) -> List[PageViews]:
        rows = await self._aggregate([
            {"$match": since(days)},
            {"$group": {"_id": "$path", "views": {"$sum": 1}}},
            {"$sort": {"views": -1, "_id": 1}},
            {"$limit": limit},
        ])
        return [PageViews(path=row["_id"], views=row["views"]) for row in rows]

    @handle_db_errors
    async def browser_stats(self, days: Optional[int] = None) -> List[BrowserViews]:
        rows = await self._aggregate([
            {"$match": since(days)},
            {"$group": {"_id": "$user_agent", "views": {"$sum": 1}}},
        ])
        counts: Counter = Counter()
        for row in rows:
            counts[extract_browser(row["_id"] or "")] += row["views"]
        return [
            BrowserViews(browser=browser, views=views)
            for browser, views in counts.most_common()
        ]

    @handle_db_errors
    async def referrer_stats(self, limit: int = 10, days: Optional[int] = None) -> List[ReferrerViews]:
        rows = await self._aggregate([
            {"$match": since(days)},
            {"$group": {"_id": "$referer", "views": {"$sum": 1}}},
            {"$sort": {"views": -1, "_id": 1}},
            {"$limit": limit},
        ])
        return [
            ReferrerViews(referrer=row["_id"] or "Direct", views=row["views"])
            for row in rows
        ]

    @handle_db_errors
    async def unique_visitors(self, days: int) -> int:
        """Distinct anonymized IPs; an estimate, since anonymization merges neighbours"""
        rows = await self._aggregate([
            {"$match": since(days)},
            {"$group": {"_id": "$anonymized_ip"}},
            {"$count": "unique"},
        ])
        return rows[0]["unique"] if rows else 0

    @handle_db_errors
    async def total_views(self, days: Optional[int] = None) -> int:
        return await self.collection.count_documents(since(days))

    @handle_db_errors
    async def time_series(self, days: int, group_by: GroupBy = "day") -> List[TimeSeriesPoint]:
        bucket = {"$dateToString": {"format": _DATE_FORMATS[group_by], "date": "$timestamp"}}
        rows = await self._aggregate([
            {"$match": since(days)},
            {"$group": {"_id": bucket, "views": {"$sum": 1}}},
            {"$sort": {"_id": 1}},
        ])
        return [TimeSeriesPoint(timestamp=row["_id"], views=row["views"]) for row in rows]
