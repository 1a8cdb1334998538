"""
Identity provider: LinkedIn OpenID Connect.

Exchanges an authorization code for a LinkedIn access token, reads the
OIDC userinfo and issues a session of our own bound to the LinkedIn subject
and email.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import UpstreamError
from ..core.security import create_session

logger = logging.getLogger(__name__)

LINKEDIN_AUTHORIZE_URL = "https://www.linkedin.com/oauth/v2/authorization"
LINKEDIN_TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
LINKEDIN_USERINFO_URL = "https://api.linkedin.com/v2/userinfo"
HTTP_TIMEOUT = 15.0


@dataclass
class AuthSession:
    """A session established for an identity."""
    user_id: str
    email: Optional[str]
    session_token: str
    expires_at: datetime


def _provider_error(response: httpx.Response) -> str:
    """Best-effort error description from a LinkedIn error response."""
    try:
        body = response.json()
        return body.get("error_description") or body.get("error") or response.text
    except ValueError:
        return response.text


class LinkedInIdentityProvider:
    """Code-for-session exchange against LinkedIn's OAuth endpoints."""

    def __init__(self, client_id: str, client_secret: str, timeout: float = HTTP_TIMEOUT):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

    async def exchange_code(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        """Exchange an authorization code for a LinkedIn token response."""
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(LINKEDIN_TOKEN_URL, data=data, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                error = _provider_error(exc.response)
                logger.warning(f"[IDENTITY] Token exchange rejected: {exc.response.status_code} {error}")
                raise UpstreamError("LinkedIn token exchange failed", details=error) from exc
            except httpx.RequestError as exc:
                logger.error(f"[IDENTITY] Error contacting LinkedIn token endpoint: {exc}")
                raise UpstreamError("Could not reach LinkedIn", details=str(exc)) from exc

        token = response.json()
        if "access_token" not in token:
            raise UpstreamError("LinkedIn token exchange failed", details="No access_token in response")
        return token

    async def fetch_userinfo(self, access_token: str) -> Dict[str, Any]:
        """Read the OIDC userinfo for an access token."""
        headers = {"Authorization": f"Bearer {access_token}"}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(LINKEDIN_USERINFO_URL, headers=headers)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error(f"[IDENTITY] Could not fetch user info: {exc}")
                raise UpstreamError("Could not fetch LinkedIn user info", details=str(exc)) from exc
        return response.json()

    async def exchange_code_for_session(
        self,
        db: AsyncSession,
        code: str,
        redirect_uri: str,
    ) -> AuthSession:
        """
        Turn an authorization code into an established session.

        Raises:
            UpstreamError: if LinkedIn rejects the code or returns no subject
        """
        token = await self.exchange_code(code, redirect_uri)
        userinfo = await self.fetch_userinfo(token["access_token"])

        user_id = userinfo.get("sub")
        email = userinfo.get("email")
        if not user_id:
            raise UpstreamError("LinkedIn did not return a user identity")

        session = await create_session(user_id=user_id, db=db, email=email)
        logger.info(f"[IDENTITY] Session established for {user_id}")
        return AuthSession(
            user_id=user_id,
            email=email,
            session_token=session.session_token,
            expires_at=session.expires_at,
        )


def get_identity_provider() -> LinkedInIdentityProvider:
    """Dependency returning the configured identity provider."""
    return LinkedInIdentityProvider(
        client_id=settings.LINKEDIN_CLIENT_ID,
        client_secret=settings.LINKEDIN_CLIENT_SECRET,
    )
