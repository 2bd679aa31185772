"""
Database connection management with SQLAlchemy async.
Provides the engine and session factory behind the document store.

The store keeps one row per collection, so the schema is tiny; tables are
created on startup when missing.
"""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from shopdesk.core.config import settings
from shopdesk.core.logging import get_logger

logger = get_logger(__name__)

_db_available: bool = False


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""
    pass


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create async database engine with proper configuration."""
    url = database_url or settings.database_url
    # Plain sqlite URLs need the async driver
    if url.startswith("sqlite:///"):
        url = url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return create_async_engine(
        url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Global engine and session factory
engine = create_engine()
async_session_factory = create_session_factory(engine)


@asynccontextmanager
async def get_db_context(
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Context manager for database sessions outside of request context."""
    async with (factory or async_session_factory)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create the document store tables if they are missing."""
    global _db_available
    # Register models on the metadata
    import shopdesk.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    _db_available = True
    logger.info("Database initialized")


def is_db_available() -> bool:
    """Check if database is available."""
    return _db_available


async def close_db(bind: Optional[AsyncEngine] = None) -> None:
    """Close database connections."""
    global _db_available
    await (bind or engine).dispose()
    _db_available = False
    logger.info("Database connections closed")
