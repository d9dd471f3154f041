"""Async SQLAlchemy 2.0 database setup.

The engine (and with it the connection pool) is process-wide: created on
first use, shared by every request, and disposed by the application
lifespan on shutdown. Requests only ever hold a session for their own
duration.
"""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from order_api.core.config import get_settings
from order_api.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


@lru_cache
def get_engine() -> AsyncEngine:
    """Create the shared async engine from settings."""
    settings = get_settings()
    connect_args: dict[str, Any] = {}
    if settings.database_ssl:
        # Encrypt without verifying the server certificate
        connect_args["ssl"] = "require"

    engine: AsyncEngine = create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        connect_args=connect_args,
    )
    return engine


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Create async session maker bound to the shared engine."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def dispose_engine() -> None:
    """Close every pooled connection and forget the cached engine."""
    if get_engine.cache_info().currsize == 0:
        return
    await get_engine().dispose()
    get_session_maker.cache_clear()
    get_engine.cache_clear()
    logger.info("database.engine_disposed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Services that own their transaction commit explicitly; anything still
    pending when the request finishes is committed here.

    Yields:
        AsyncSession: Database session, closed on every exit path.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
