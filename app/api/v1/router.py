"""
API Router Factory
Provides centralized router creation and configuration
"""
from fastapi import APIRouter
from typing import List, Optional

from .endpoints import analytics


def create_router(
    prefix: str = "/api/v1",
    tags: Optional[List[str]] = None
) -> APIRouter:
    """
    Create configured API router with all endpoints

    Args:
        prefix: API route prefix
        tags: OpenAPI tags

    Returns:
        Configured APIRouter instance
    """
    if tags is None:
        tags = ["api"]

    router = APIRouter(prefix=prefix, tags=tags)
    router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])

    return router
