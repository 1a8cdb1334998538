"""
Authentication dependencies for FastAPI.
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import security
from app.core.exceptions import AuthenticationRequired, LoginRedirect
from app.crud.profile import ProfileStore
from app.db.models.auth_session import UserSession
from app.db.session import get_db

logger = logging.getLogger(__name__)


async def get_optional_session(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[UserSession]:
    """
    Resolve the request's session, or None when there is no valid one.
    """
    token = security.extract_session_token(request)
    return await security.get_session_identity(db, token)


async def get_current_session(
    session: Optional[UserSession] = Depends(get_optional_session),
) -> UserSession:
    """
    Require a session on API endpoints.

    Raises:
        AuthenticationRequired: 401 when no valid session is present
    """
    if session is None:
        raise AuthenticationRequired()
    return session


async def require_page_session(
    request: Request,
    session: Optional[UserSession] = Depends(get_optional_session),
) -> UserSession:
    """
    Gate for protected pages: presence of a session only.

    Raises:
        LoginRedirect: redirects to /login?next=<requested path>
    """
    if session is None:
        logger.info(f"[GATE] No session for {request.url.path}, redirecting to login")
        raise LoginRedirect(next_path=request.url.path)
    return session


async def get_profile_store(
    session: UserSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> ProfileStore:
    """Profile store scoped to the session identity."""
    return ProfileStore(db, owner_id=session.user_id, email=session.email)


async def get_page_profile_store(
    session: UserSession = Depends(require_page_session),
    db: AsyncSession = Depends(get_db),
) -> ProfileStore:
    return ProfileStore(db, owner_id=session.user_id, email=session.email)
