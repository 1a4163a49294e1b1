"""
API Dependencies
"""
from fastapi import Request

from app.core.errors import DatabaseError
from app.repositories.analytics_events import AnalyticsEventRepository


async def get_analytics_repo(request: Request) -> AnalyticsEventRepository:
    """Repository wired up by the application lifespan"""
    repo = getattr(request.app.state, "analytics_repo", None)
    if repo is None:
        raise DatabaseError("Analytics storage is not configured")
    return repo
