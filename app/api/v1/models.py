"""
API Response Models
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AnalyticsStatus(BaseModel):
    running: bool
    pending: int


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = "ok"
    version: str
    environment: str
    analytics: Optional[AnalyticsStatus] = None
