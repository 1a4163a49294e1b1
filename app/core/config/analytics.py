"""
Analytics Pipeline Configuration
"""
from typing import List
from pydantic import BaseModel, Field


class AnalyticsConfig(BaseModel):
    """Batch processor and collector configuration"""

    MAX_BATCH_SIZE: int = Field(
        500, ge=1,
        description="Maximum number of buffered events before a flush"
    )
    FLUSH_INTERVAL_MS: int = Field(
        1000, ge=1,
        description="Time between periodic flushes (ms)"
    )
    CACHE_KEY_PREFIX: str = Field(
        "analytics:event:",
        description="Buffer key prefix for pending events"
    )
    CACHE_CLEANUP_MS: int = Field(
        60000, ge=0,
        description="In-memory buffer cleanup interval (ms), 0 disables"
    )
    GENERALIZE_IDS: bool = Field(
        False,
        description="Replace numeric/UUID path segments with :id/:uuid"
    )
    EXTRA_SENSITIVE_PARAMS: List[str] = Field(
        default_factory=list,
        description="Additional query parameter names to strip"
    )
