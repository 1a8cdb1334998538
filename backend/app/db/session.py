"""
Database session management module.
"""
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from ..core.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    # SQLite (tests, local runs) uses its own pool and rejects sizing options
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 1800,
    }


# Session-scoped store connection
engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Privileged store connection; only the payment webhook uses it
admin_engine = (
    engine
    if settings.admin_database_url == settings.DATABASE_URL
    else create_async_engine(settings.admin_database_url, **_engine_options(settings.admin_database_url))
)

SessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

AdminSessionLocal = async_sessionmaker(
    admin_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session.
    Handles commit on success and rollback on failure.

    Yields:
        AsyncSession: Database session
    """
    async with SessionLocal() as session:
        try:
            yield session
            # If the request handler completed successfully, commit the transaction
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_admin_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a privileged database session (bypasses per-identity scoping).

    Only the payment webhook depends on this.
    """
    async with AdminSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
