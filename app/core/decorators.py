"""
Database error handling decorators
"""
import functools
from typing import Callable

from pymongo.errors import ConnectionFailure, OperationFailure

from app.core.errors import DatabaseError
from app.core.logging import logger


def handle_db_errors(func: Callable) -> Callable:
    """
    Decorator to handle database errors
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except DatabaseError:
            raise
        except ConnectionFailure as e:
            logger.error(f"Database connection error: {str(e)}")
            raise DatabaseError(
                message="Could not connect to database",
                details={"original_error": str(e)}
            ) from e
        except OperationFailure as e:
            logger.error(f"Database operation error: {str(e)}")
            raise DatabaseError(
                message="Database operation failed",
                details={"original_error": str(e)}
            ) from e
        except Exception as e:
            logger.exception("Unexpected database error")
            raise DatabaseError(
                message="An unexpected database error occurred",
                details={"original_error": str(e)}
            ) from e
    return wrapper
