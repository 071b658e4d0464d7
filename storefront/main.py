"""
Application factory for the Storefront Order API.

`app` is what uvicorn and gunicorn load; tests call `create_app()` for a
fresh instance with its own rate limiters.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
import structlog

from storefront.config import get_settings
from storefront.config.logging import configure_logging
from storefront.database.connection import init_database, close_database
from storefront.serving.cache import init_redis, close_redis
from storefront.serving.rate_limit import RateLimiter
from storefront.serving.api.errors import register_error_handlers
from storefront.serving.api.middleware import (
    RequestLoggingMiddleware,
    RequestTimeoutMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from storefront.serving.api.routes import (
    auth_router,
    discounts_router,
    health_router,
    orders_router,
    products_router,
)
from storefront.services import CredentialService

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the stores and run the limiter sweeps for the life of the app."""
    configure_logging()
    logger.info("Starting up", service=app.title)

    # Start without the database; /health/ready reports it until it answers
    try:
        await init_database()
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database init failed", error=str(e))

    try:
        await init_redis()
    except (RedisError, OSError) as e:
        logger.warning("Redis init failed, order cache disabled", error=str(e))

    await app.state.global_limiter.start()
    await app.state.login_limiter.start()

    yield

    logger.info("Shutting down...")
    await app.state.login_limiter.stop()
    await app.state.global_limiter.stop()
    await close_redis()
    await close_database()


def create_app() -> FastAPI:
    """
    Build the application.

    Long-lived collaborators (credential service, rate limiters) are created
    here and kept on ``app.state`` so each app instance owns its own set.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Checkout, inventory and order fulfilment for an online store",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.credentials = CredentialService(settings.security)
    app.state.global_limiter = RateLimiter(
        max_requests=settings.security.rate_limit_requests,
        window_seconds=settings.security.rate_limit_window_seconds,
    )
    app.state.login_limiter = RateLimiter.for_login()

    # Added innermost first: 429s still get logged and carry CORS and security headers
    app.add_middleware(RateLimitMiddleware, limiter=app.state.global_limiter)
    app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=settings.orders.request_timeout_seconds)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["Auth"])
    app.include_router(products_router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])
    app.include_router(discounts_router, prefix="/api/v1/discounts", tags=["Discounts"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=get_settings().api_host, port=get_settings().api_port)
