"""
Database Session Management

Async sessions for run history and user profiles; a sync engine only
bootstraps the schema when migrations have not been run.
"""

from typing import AsyncGenerator

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from runtracker.config import settings


def _get_async_url(url: str) -> str:
    """Convert sync database URL to async version."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    return url


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    if url.startswith("postgresql"):
        return {
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 1800,  # 30 minutes
        }
    return {}


# =============================================================================
# Async Engine
# =============================================================================

_async_url = _get_async_url(settings.database_url)
async_engine = create_async_engine(_async_url, **_engine_options(_async_url))

# Runs outlive the request that stopped them; keep loaded attributes after commit
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Close pooled connections on shutdown."""
    await async_engine.dispose()


# =============================================================================
# Initialization
# =============================================================================

def init_db() -> None:
    """Create missing tables (users, runs)."""
    from runtracker.models.base import Base
    # Import all models to register them
    from runtracker.models import User, RunRecordModel  # noqa

    engine = create_engine(settings.database_url, **_engine_options(settings.database_url))
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
