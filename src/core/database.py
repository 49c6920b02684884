"""Database connection and session management.

This module handles all database connectivity for the DebtRescue.AI API,
including async session management, connection pooling, and database lifecycle
operations. It uses SQLModel with async SQLAlchemy.

Services never reach for a global client: each request gets its own
``AsyncSession`` through the ``get_session`` dependency and hands it to the
services and repositories it constructs.

Example:
    >>> from src.core.database import get_session
    >>> from fastapi import Depends
    >>>
    >>> @router.get("/items")
    >>> async def get_items(session: AsyncSession = Depends(get_session)):
    >>>     result = await session.execute(select(Item))
    >>>     return result.scalars().all()
"""

from typing import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)
from sqlmodel import SQLModel

from src.core.config import settings

logger = structlog.get_logger(__name__)

# Global engine instance (created once at startup)
_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global async database engine.

    Returns:
        The global AsyncEngine instance for database connections.

    Raises:
        RuntimeError: If database URL is not configured.
    """
    global _engine

    if _engine is None:
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is not configured")

        _engine = create_async_engine(
            settings.database_url,
            echo=settings.db_echo,
            pool_pre_ping=True,
        )

    return _engine


def get_session_maker() -> async_sessionmaker:
    """Get or create the global async session maker.

    Returns:
        An async_sessionmaker instance for creating database sessions.
    """
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_maker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency injection function for database sessions.

    Provides a session that is rolled back if the request fails mid-way and
    closed after the request completes.

    Yields:
        An AsyncSession instance for database operations.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables defined by SQLModel models.

    Warning:
        Intended for development and tests. Production schemas should be
        managed with migrations.
    """
    # Register every table on the metadata before create_all
    import src.models  # noqa: F401

    engine = get_engine()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    logger.info("database_tables_created")


async def close_db() -> None:
    """Dispose of the engine and its connection pool."""
    global _engine, _async_session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
        logger.info("database_connections_closed")


async def check_db_connection() -> bool:
    """Check if the database is accessible and responsive.

    Returns:
        True if the database is accessible, False otherwise.
    """
    try:
        async with get_engine().connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            _ = result.scalar()
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.error("database_connection_check_failed", error=str(e))
        return False
