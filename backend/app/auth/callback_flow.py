"""
OAuth callback flow.

    AWAITING_CODE -> EXCHANGING_CODE -> SESSION_ESTABLISHED | EXCHANGE_FAILED
    SESSION_ESTABLISHED -> PROFILE_RESOLVED -> ROUTE_TO_ONBOARDING | ROUTE_TO_DASHBOARD
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import UpstreamError
from ..crud.profile import resolve_profile
from ..db.models.profile import Profile
from .identity import AuthSession, LinkedInIdentityProvider
from .redirect_policy import login_redirect_url, needs_onboarding, post_login_destination

logger = logging.getLogger(__name__)

MISSING_CODE_ERROR = "missing_code"
INVALID_STATE_ERROR = "invalid_state"


class CallbackState(str, Enum):
    AWAITING_CODE = "awaiting_code"
    EXCHANGING_CODE = "exchanging_code"
    SESSION_ESTABLISHED = "session_established"
    EXCHANGE_FAILED = "exchange_failed"
    PROFILE_RESOLVED = "profile_resolved"
    ROUTE_TO_ONBOARDING = "route_to_onboarding"
    ROUTE_TO_DASHBOARD = "route_to_dashboard"


@dataclass
class CallbackResult:
    state: CallbackState
    redirect_url: str
    session: Optional[AuthSession] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.session is not None


class OAuthCallbackFlow:
    """Runs one OAuth callback from the provider's redirect to our own."""

    def __init__(self, db: AsyncSession, provider: LinkedInIdentityProvider, redirect_uri: str):
        self.db = db
        self.provider = provider
        self.redirect_uri = redirect_uri
        self.state = CallbackState.AWAITING_CODE

    def _fail(self, error: str) -> CallbackResult:
        self.state = CallbackState.EXCHANGE_FAILED
        logger.warning(f"[CALLBACK] Login failed: {error}")
        return CallbackResult(
            state=self.state,
            redirect_url=login_redirect_url(error=error),
            error=error,
        )

    async def run(
        self,
        code: Optional[str],
        error: Optional[str] = None,
        next_path: Optional[str] = None,
        state_verified: bool = False,
    ) -> CallbackResult:
        """
        ``state_verified`` tells whether the request's OAuth ``state`` matched
        the one saved when the authorize redirect was issued. Without it the
        code is never exchanged.
        """
        if error:
            return self._fail(error)
        if not state_verified:
            return self._fail(INVALID_STATE_ERROR)
        if not code:
            return self._fail(MISSING_CODE_ERROR)

        self.state = CallbackState.EXCHANGING_CODE
        try:
            session = await self.provider.exchange_code_for_session(self.db, code, self.redirect_uri)
        except UpstreamError as e:
            message = e.message
            if settings.is_development and e.details:
                message = f"{e.message}: {e.details}"
            return self._fail(message)
        except SQLAlchemyError:
            logger.exception("[CALLBACK] Could not store the session")
            await self.db.rollback()
            return self._fail("Could not create session")

        self.state = CallbackState.SESSION_ESTABLISHED
        profile = await self._resolve_profile(session)
        self.state = CallbackState.PROFILE_RESOLVED

        destination = post_login_destination(profile, next_path)
        self.state = (
            CallbackState.ROUTE_TO_ONBOARDING
            if needs_onboarding(profile)
            else CallbackState.ROUTE_TO_DASHBOARD
        )
        logger.info(f"[CALLBACK] {session.user_id} -> {destination} ({self.state.value})")
        return CallbackResult(state=self.state, redirect_url=destination, session=session)

    async def _resolve_profile(self, session: AuthSession) -> Optional[Profile]:
        try:
            return await resolve_profile(self.db, session.user_id, session.email)
        except SQLAlchemyError:
            # The login still succeeds; the row is created on first profile write
            logger.exception(f"[CALLBACK] Could not resolve profile for {session.user_id}")
            await self.db.rollback()
            return None
