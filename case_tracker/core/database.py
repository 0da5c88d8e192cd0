"""Async PostgreSQL access for the case tracker.

One engine and one session factory per process, created lazily from
``DATABASE_*`` settings. Request handlers receive a session from
:func:`get_session`; the whole request is a single transaction.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from case_tracker.core.config import DatabaseConfig, get_settings
from case_tracker.core.errors import ConflictError

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create a pooled asyncpg engine with sessions pinned to UTC."""
    logger.info(
        "Connecting to database %s on %s:%s (pool %s+%s)",
        config.name,
        config.host,
        config.port,
        config.pool_size,
        config.max_overflow,
    )
    return create_async_engine(
        config.async_url,
        echo=config.echo,
        pool_pre_ping=True,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        connect_args={"server_settings": {"timezone": "UTC"}},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows are plain dicts built from results, so nothing needs refreshing after commit
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().database)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def reset_engine() -> None:
    """Dispose of the pool and forget the engine; the next access rebuilds it."""
    global _engine, _session_factory
    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")


async def get_session() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency: one session per request.

    Commits when the request handler returns, rolls back if it raises.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        else:
            await session.commit()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncGenerator[AsyncSession]:
    """Run a group of writes inside a SAVEPOINT.

    If the block raises, every write made inside it is rolled back together
    before the exception propagates; the outer transaction stays usable.
    """
    async with session.begin_nested():
        yield session


def is_unique_violation(error: IntegrityError) -> bool:
    """True if the database rejected a write because of a UNIQUE constraint."""
    if getattr(error.orig, "sqlstate", None) == "23505":
        return True
    return "duplicate key" in str(error.orig).lower()


@asynccontextmanager
async def unique_or_conflict(
    session: AsyncSession,
    message: str,
    details: dict[str, Any] | None = None,
) -> AsyncGenerator[AsyncSession]:
    """Run writes in a SAVEPOINT and report a unique violation as ConflictError.

    The savepoint is rolled back first, so the request transaction stays usable.
    """
    try:
        async with session.begin_nested():
            yield session
    except IntegrityError as e:
        if not is_unique_violation(e):
            raise
        raise ConflictError(message, details=details) from e
