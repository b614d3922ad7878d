"""SQLAlchemy async engine configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from payment_advice.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database.

    Args:
        settings: Application settings

    Returns:
        Async engine
    """
    options: dict[str, Any] = {
        "echo": settings.db_echo,
        "pool_pre_ping": True,
    }
    # SQLite uses a single-connection pool without sizing options
    if not settings.database_url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10)

    return create_async_engine(settings.database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
