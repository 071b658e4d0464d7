"""
API Module
"""
from .errors import register_error_handlers
from .middleware import (
    RequestLoggingMiddleware,
    RequestTimeoutMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
)

__all__ = [
    "register_error_handlers",
    "RequestLoggingMiddleware",
    "RequestTimeoutMiddleware",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
