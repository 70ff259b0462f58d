# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

Uses the SQLAlchemy 2.0 async API. PostgreSQL (asyncpg) in deployments,
SQLite (aiosqlite) for local runs and tests.

Example:
    from courseflow.infrastructure.database.connection import (
        init_database,
        get_session,
    )

    # Initialize at application startup
    await init_database(settings)

    # Use in request handlers
    async with get_session() as session:
        orchestrator = CourseOrchestrator(session)
        await orchestrator.finalize_voting(course_id)
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from courseflow.infrastructure.database.models import Base

if TYPE_CHECKING:
    from courseflow.core.config.settings import Settings

# Set by init_database(), cleared by close_database()
_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


class DatabaseError(Exception):
    """The store failed or is not available.

    Raised instead of SQLAlchemy exceptions so callers only handle the
    engine's own error types. Business rule failures are LifecycleError.

    Attributes:
        message: What the engine was doing.
        original_error: The driver or SQLAlchemy exception, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


def create_engine(settings: "Settings") -> AsyncEngine:
    """Create an async engine from settings.

    Pool sizing is skipped for SQLite, which uses a static pool.
    """
    kwargs: dict[str, Any] = {"echo": settings.database.echo}
    if settings.database.is_sqlite:
        kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
    return create_async_engine(settings.database.url, **kwargs)


async def init_database(settings: "Settings", create_schema: bool = False) -> None:
    """Initialize the connection pool.

    Called once per process, usually through courseflow.runtime.lifespan().

    Args:
        settings: Application settings containing database configuration.
        create_schema: Create missing tables. Meant for local runs; schema
            migrations are owned by the deployment tooling.

    Raises:
        DatabaseError: If engine creation or schema creation fails.
    """
    global _engine, _sessionmaker

    try:
        _engine = create_engine(settings)
        _sessionmaker = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        if create_schema:
            async with _engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e


async def close_database() -> None:
    """Close the connection pool.

    Safe to call when the pool was never opened.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the sessionmaker.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Get an async session.

    Services commit their own transactions; anything left uncommitted when
    the block exits is rolled back.

    Yields:
        AsyncSession for database operations.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    sessionmaker = get_sessionmaker()

    async with sessionmaker() as session:
        try:
            yield session
        finally:
            await session.rollback()


async def check_database_connection() -> bool:
    """Check if the database is reachable.

    Returns:
        True if the database is reachable, False otherwise.
    """
    if _engine is None:
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
