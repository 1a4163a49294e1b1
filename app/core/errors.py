"""
Application error types
"""
from typing import Any, Dict, Optional

from fastapi import status


class APIError(Exception):
    """Base error rendered by the global error handler"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code


class DatabaseError(APIError):
    """Persistence layer failure"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "DATABASE_ERROR"


class CacheError(APIError):
    """Cache backend failure"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "CACHE_ERROR"


class ValidationError(APIError):
    """Request validation error"""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
