import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models.auth_session import UserSession
from .config import settings

logger = logging.getLogger(__name__)

# Key of the session token inside the signed session cookie
SESSION_COOKIE_KEY = "session_token"


async def create_session(
    user_id: str,
    db: AsyncSession,
    email: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> UserSession:
    """
    Issue a new session for an identity.

    Multi-session support: other live sessions of the same user are kept
    (different browsers/devices); only expired ones are deleted.
    """
    current_time = datetime.utcnow()
    expires_at = expires_at or current_time + timedelta(days=settings.SESSION_TTL_DAYS)

    # Clean up ONLY expired sessions for this user
    stmt = select(UserSession).where(
        UserSession.user_id == user_id,
        UserSession.expires_at < current_time,
    )
    result = await db.execute(stmt)
    expired_sessions = result.scalars().all()
    for session_to_delete in expired_sessions:
        await db.delete(session_to_delete)
    if expired_sessions:
        logger.info(f"Deleted {len(expired_sessions)} expired sessions for user {user_id}")

    new_session = UserSession(
        user_id=user_id,
        email=email,
        session_token=secrets.token_urlsafe(32),
        expires_at=expires_at.replace(tzinfo=None),  # Naive UTC
        last_activity=current_time,
    )
    db.add(new_session)
    await db.flush()
    await db.commit()
    logger.info(f"Created session for user {user_id}")
    return new_session


async def get_session_identity(db: AsyncSession, token: Optional[str]) -> Optional[UserSession]:
    """
    Resolve a session token to its live session, or None.
    """
    if not token:
        return None

    current_time = datetime.utcnow()
    result = await db.execute(
        select(UserSession).where(
            UserSession.session_token == token,
            UserSession.expires_at > current_time,
        )
    )
    session = result.scalar_one_or_none()
    if session is None:
        return None

    session.last_activity = current_time
    await db.flush()
    return session


async def revoke_session(db: AsyncSession, token: str) -> int:
    """Delete the session with this token. Returns the number of sessions removed."""
    result = await db.execute(select(UserSession).where(UserSession.session_token == token))
    sessions = result.scalars().all()
    for session in sessions:
        await db.delete(session)
    await db.flush()
    await db.commit()
    return len(sessions)


def extract_session_token(request: Request) -> Optional[str]:
    """
    Session token of the request: a Bearer header wins over the session cookie.
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    if "session" in request.scope:
        return request.session.get(SESSION_COOKIE_KEY)
    return None
