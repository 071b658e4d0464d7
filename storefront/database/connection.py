"""
Database Connection Management

One engine per process and one AsyncSession per unit of work. The unit of
work commits when its block completes and rolls back when an exception
escapes, so checkout and cancellation either land whole or not at all.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from storefront.config import get_settings
from storefront.database.models import Base

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


async def init_database(url: Optional[str] = None) -> AsyncEngine:
    """
    Create the engine, verify it answers and prepare the session factory.

    Args:
        url: Connection URL overriding ``DATABASE_URL`` / ``POSTGRES_*``

    Raises:
        SQLAlchemyError: the database did not answer ``SELECT 1``
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    db_settings = get_settings().database
    engine = create_async_engine(
        url or db_settings.async_url,
        echo=db_settings.echo,
        pool_pre_ping=True,
        # asyncpg connections are opened per checkout
        poolclass=NullPool,
    )

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database unreachable", host=db_settings.host, error=str(e))
        await engine.dispose()
        raise

    _engine = engine
    _session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    logger.info("Database ready", host=db_settings.host, database=db_settings.db)

    if db_settings.auto_create_schema:
        await create_schema(engine)
    return engine


async def create_schema(engine: Optional[AsyncEngine] = None) -> None:
    """Create the tables that do not exist yet."""
    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ensured", tables=sorted(Base.metadata.tables))


async def close_database() -> None:
    global _engine, _session_factory

    if _engine is None:
        return
    await _engine.dispose()
    _engine, _session_factory = None, None
    logger.info("Database engine disposed")


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Open a unit of work.

    Example:
        async with get_db() as db:
            await OrderService(db).create_order(request)
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.warning("Unit of work rolled back", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise


async def get_db_dependency() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one unit of work per request.

    The exit code runs after the response has been sent, so routes that write
    call ``await db.commit()`` themselves before returning. The commit here
    then has nothing left to flush; the rollback still covers failed requests.
    """
    async with get_db() as session:
        yield session


async def check_database_health() -> dict:
    """Round-trip latency of ``SELECT 1``, or the reason it failed."""
    start = time.perf_counter()
    try:
        async with get_db() as db:
            await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError, RuntimeError) as e:
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - start) * 1000, 2),
    }
