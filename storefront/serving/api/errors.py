"""
Error Responses

Maps the domain exception taxonomy to HTTP responses.
"""

import math
from typing import Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from storefront.errors import (
    ConflictError,
    ForbiddenError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
    RateLimitedError,
    StorefrontError,
    UnauthenticatedError,
    UpstreamError,
)

logger = structlog.get_logger(__name__)

# Checked in order, first matching base class wins
ERROR_STATUS_CODES: Dict[type, int] = {
    NotFoundError: 404,
    ConflictError: 409,
    InsufficientStockError: 409,
    InvalidInputError: 400,
    RateLimitedError: 429,
    UnauthenticatedError: 401,
    ForbiddenError: 403,
    UpstreamError: 503,
}


def status_for(exc: StorefrontError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map StorefrontError subclasses to appropriate HTTP responses."""
    status_code = status_for(exc)
    content = {"detail": str(exc), "error_type": type(exc).__name__}
    headers = {}

    if isinstance(exc, InvalidInputError) and exc.field:
        content["field"] = exc.field
    if isinstance(exc, RateLimitedError):
        content["retry_after_seconds"] = exc.retry_after
        content["retry_after_minutes"] = max(math.ceil(exc.retry_after / 60), 1)
        headers["Retry-After"] = str(exc.retry_after)
    if isinstance(exc, UnauthenticatedError):
        headers["WWW-Authenticate"] = "Bearer"

    return JSONResponse(status_code=status_code, content=content, headers=headers or None)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Backing store failures surface as an opaque upstream error."""
    logger.error(
        "Database error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage backend unavailable", "error_type": UpstreamError.__name__},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
