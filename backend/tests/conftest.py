"""
Test configuration for the Linkaday backend tests.

Settings are read from the environment when ``app.core.config`` is first
imported, so the test environment is set up before anything from ``app``.
Every test gets its own in-memory SQLite database.
"""
import os
import sys
from pathlib import Path

_backend_dir = Path(__file__).parent.parent
if str(_backend_dir) not in sys.path:
    sys.path.insert(0, str(_backend_dir))

os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite://",
    "ENVIRONMENT": "development",
    "SESSION_SECRET_KEY": "test-session-secret",
    "LINKEDIN_CLIENT_ID": "test-linkedin-client",
    "LINKEDIN_CLIENT_SECRET": "test-linkedin-secret",
    "PUBLIC_APP_URL": "http://test",
    "STRIPE_SECRET_KEY": "sk_test_123",
    "STRIPE_PRICE_ID": "price_test_123",
    "STRIPE_WEBHOOK_SECRET": "whsec_test_secret",
    "N8N_PROFILE_WEBHOOK_URL": "https://n8n.example.com/webhook/profile",
    "TELEGRAM_BOT_USERNAME": "linkaday_bot",
})

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.security import create_session
from app.crud.profile import get_profile, new_profile
from app.db.models import Base
from app.db.session import get_admin_db, get_db
from main import app


@pytest_asyncio.fixture
async def session_factory():
    """Sessionmaker bound to a fresh in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """Async httpx client using ASGI transport, with the store on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_admin_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def login(session_factory):
    """
    Create a session (and optionally a profile) for an identity.

    Returns the Authorization headers for that session.
    """
    async def _login(user_id="li-user-1", email="user@example.com", profile=None):
        async with session_factory() as db:
            if profile is not None:
                row = new_profile(user_id, email)
                for field, value in profile.items():
                    setattr(row, field, value)
                db.add(row)
                await db.commit()
            session = await create_session(user_id=user_id, db=db, email=email)
            return {"Authorization": f"Bearer {session.session_token}"}

    return _login


@pytest_asyncio.fixture
async def load_profile(session_factory):
    """Read a profile back in a fresh session."""
    async def _load(user_id="li-user-1"):
        async with session_factory() as db:
            return await get_profile(db, user_id)

    return _load
