"""
Error handling middleware
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import APIError
from app.core.logging import logger


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render our own exceptions with their status and error code"""
    logger.error(
        f"API Error: {exc.error_code}",
        extra={
            "path": request.url.path,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render request/model validation failures as 400"""
    error_response = {
        "error": "VALIDATION_ERROR",
        "message": "Invalid request data",
        "details": {
            "errors": [
                {
                    "loc": list(err["loc"]),
                    "msg": err["msg"],
                    "type": err["type"]
                }
                for err in exc.errors()
            ]
        }
    }
    logger.warning(
        "Validation Error",
        extra={"path": request.url.path}
    )
    return JSONResponse(status_code=400, content=error_response)


async def error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global error handler for unexpected exceptions
    """
    logger.exception(
        "Unexpected Error",
        extra={
            "path": request.url.path,
            "error_type": type(exc).__name__
        }
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred"
        }
    )


async def error_logging_middleware(request: Request, call_next):
    """
    Middleware for logging all errors
    """
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception(
            "Unhandled Exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_type": type(exc).__name__
            }
        )
        raise


def setup_error_handlers(app: FastAPI):
    """
    Configure error handlers for FastAPI app
    """
    app.middleware("http")(error_logging_middleware)
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PydanticValidationError, validation_error_handler)
    app.add_exception_handler(Exception, error_handler)
