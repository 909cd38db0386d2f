"""
Snippetbox - Database Engine & Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       deadline helper used by every persistence call.
Why:   Centralizes all database connection logic in one place.
How:   `create_engine_from_settings()` builds one pooled engine per
       application; services receive the `async_sessionmaker` built on it
       and open a short-lived session per call.
Who:   Built by `create_app()`; used by the services and the session store.

Connection Pooling Strategy:
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    The pool is shared by every request task; no request may assume
    exclusive access to a connection beyond its own session.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential_jitter,
)

from snippetbox.config import Settings
from snippetbox.exceptions import DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations.
    """
    pass


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create the application's async engine.

    SQLite (used by the test-suite) does not take pool sizing arguments, so
    those are only passed to server databases.
    """
    kwargs = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: rows stay readable after the session commits
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def with_deadline(operation: Awaitable[T], timeout: float, what: str) -> T:
    """
    Await a persistence operation under a deadline.

    What:    Bounds how long a request waits on the database.
    How:     asyncio.wait_for cancels the operation when the deadline passes;
             the cancellation releases the connection back to the pool.

    Raises:
        DatabaseError: the deadline expired.
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("Database operation '%s' exceeded %.1fs deadline", what, timeout)
        raise DatabaseError(
            message=f"{what} timed out",
            context={"operation": what, "timeout": timeout},
        )


async def verify_connection(engine: AsyncEngine, attempts: int = 5) -> None:
    """
    Check that the database answers before serving traffic.

    Retries with exponential backoff + jitter so a container that starts
    before its database does not crash-loop.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=1, max=10),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
    logger.info("Database connection verified")


async def dispose_engine(engine: AsyncEngine) -> None:
    """Gracefully closes all connections in the pool (application shutdown)."""
    await engine.dispose()
