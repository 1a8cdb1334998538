"""
Tests for the OAuth callback flow, both directly and through GET /auth/callback.
"""
from typing import Optional
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from app.auth.callback_flow import CallbackState, OAuthCallbackFlow
from app.auth.identity import AuthSession, LinkedInIdentityProvider, get_identity_provider
from app.core.config import settings
from app.core.exceptions import UpstreamError
from app.core.profile_document import default_profile_json
from app.core.security import create_session, get_session_identity
from app.db.models.profile import PLAN_FREE
from main import app

REDIRECT_URI = "http://test/auth/callback"


class FakeIdentityProvider:
    """Accepts any code and issues a real session for a fixed identity."""

    def __init__(self, user_id="li-user-1", email="user@example.com", error: Optional[Exception] = None):
        self.user_id = user_id
        self.email = email
        self.error = error
        self.codes = []

    async def exchange_code_for_session(self, db, code, redirect_uri):
        self.codes.append(code)
        if self.error is not None:
            raise self.error
        session = await create_session(user_id=self.user_id, db=db, email=self.email)
        return AuthSession(
            user_id=self.user_id,
            email=self.email,
            session_token=session.session_token,
            expires_at=session.expires_at,
        )


def error_param(url):
    return parse_qs(urlsplit(url).query)["error"][0]


@pytest.mark.asyncio
async def test_missing_code_fails_to_login(db_session):
    provider = FakeIdentityProvider()
    flow = OAuthCallbackFlow(db_session, provider, REDIRECT_URI)
    result = await flow.run(code=None, state_verified=True)

    assert result.state == CallbackState.EXCHANGE_FAILED
    assert result.redirect_url == "/login?error=missing_code"
    assert result.session is None
    assert provider.codes == []


@pytest.mark.asyncio
async def test_provider_error_parameter_fails_to_login(db_session):
    provider = FakeIdentityProvider()
    result = await OAuthCallbackFlow(db_session, provider, REDIRECT_URI).run(
        code="abc", error="access_denied"
    )

    assert result.state == CallbackState.EXCHANGE_FAILED
    assert error_param(result.redirect_url) == "access_denied"
    assert provider.codes == []


@pytest.mark.asyncio
async def test_rejected_code_surfaces_provider_message(db_session):
    provider = FakeIdentityProvider(error=UpstreamError("LinkedIn token exchange failed", details="invalid code"))
    flow = OAuthCallbackFlow(db_session, provider, REDIRECT_URI)
    result = await flow.run(code="bad", state_verified=True)

    assert result.state == CallbackState.EXCHANGE_FAILED
    assert result.redirect_url.startswith("/login?")
    # Development mode in tests: details are included
    assert error_param(result.redirect_url) == "LinkedIn token exchange failed: invalid code"


@pytest.mark.asyncio
async def test_new_identity_gets_default_profile_and_onboarding(db_session, load_profile):
    flow = OAuthCallbackFlow(db_session, FakeIdentityProvider(), REDIRECT_URI)
    result = await flow.run(code="abc", state_verified=True)

    assert result.succeeded
    assert result.state == CallbackState.ROUTE_TO_ONBOARDING
    assert result.redirect_url == "/profile"

    profile = await load_profile("li-user-1")
    assert profile is not None
    assert profile.email == "user@example.com"
    assert profile.plan == PLAN_FREE
    assert profile.is_active is False
    assert profile.onboarding_completed is False
    assert profile.profile_json == default_profile_json()
    assert profile.directive_json == {}
    assert profile.onboarding_json == {}


@pytest.mark.asyncio
async def test_session_is_usable_after_callback(db_session):
    flow = OAuthCallbackFlow(db_session, FakeIdentityProvider(), REDIRECT_URI)
    result = await flow.run(code="abc", state_verified=True)

    session = await get_session_identity(db_session, result.session.session_token)
    assert session is not None
    assert session.user_id == "li-user-1"


@pytest.mark.asyncio
async def test_completed_profile_routes_to_dashboard_and_keeps_progress(db_session, login, load_profile):
    await login(profile={
        "contact_email": "me@example.com",
        "onboarding_completed": True,
        "profile_json": None,
        "directive_json": None,
    })

    flow = OAuthCallbackFlow(db_session, FakeIdentityProvider(), REDIRECT_URI)
    result = await flow.run(code="abc", state_verified=True)

    assert result.state == CallbackState.ROUTE_TO_DASHBOARD
    assert result.redirect_url == "/dashboard"

    profile = await load_profile("li-user-1")
    assert profile.onboarding_completed is True
    assert profile.contact_email == "me@example.com"
    assert profile.profile_json == default_profile_json()
    assert profile.directive_json == {}


@pytest.mark.asyncio
async def test_blank_contact_email_routes_to_onboarding(db_session, login):
    await login(profile={"contact_email": "  ", "onboarding_completed": True})

    flow = OAuthCallbackFlow(db_session, FakeIdentityProvider(), REDIRECT_URI)
    result = await flow.run(code="abc", state_verified=True)

    assert result.state == CallbackState.ROUTE_TO_ONBOARDING


@pytest.mark.asyncio
async def test_next_path_overrides_destination(db_session):
    flow = OAuthCallbackFlow(db_session, FakeIdentityProvider(), REDIRECT_URI)
    result = await flow.run(code="abc", next_path="/billing", state_verified=True)

    assert result.redirect_url == "/billing"
    assert result.state == CallbackState.ROUTE_TO_ONBOARDING


@pytest.mark.asyncio
async def test_profile_store_failure_does_not_abort_login(db_session):
    flow = OAuthCallbackFlow(db_session, FakeIdentityProvider(), REDIRECT_URI)
    with patch("app.auth.callback_flow.resolve_profile", AsyncMock(side_effect=SQLAlchemyError("boom"))):
        result = await flow.run(code="abc", state_verified=True)

    assert result.succeeded
    assert result.state == CallbackState.ROUTE_TO_ONBOARDING
    assert result.redirect_url == "/profile"


@pytest.mark.asyncio
async def test_unverified_state_never_exchanges_code(db_session):
    provider = FakeIdentityProvider()
    result = await OAuthCallbackFlow(db_session, provider, REDIRECT_URI).run(code="abc")

    assert result.state == CallbackState.EXCHANGE_FAILED
    assert result.redirect_url == "/login?error=invalid_state"
    assert result.session is None
    assert provider.codes == []


async def start_login(client, **params):
    """Go through /auth/login/linkedin and return the state sent to LinkedIn."""
    response = await client.get("/auth/login/linkedin", params=params)
    assert response.status_code == 302
    return parse_qs(urlsplit(response.headers["location"]).query)["state"][0]


@pytest.mark.asyncio
async def test_callback_endpoint_sets_session_cookie(client):
    app.dependency_overrides[get_identity_provider] = lambda: FakeIdentityProvider()
    state = await start_login(client)

    response = await client.get("/auth/callback", params={"code": "abc", "state": state})
    assert response.status_code == 303
    assert response.headers["location"] == "/profile"
    assert "session" in response.cookies

    # The session cookie now opens protected pages
    page = await client.get("/dashboard")
    assert page.status_code == 200
    assert page.json()["next_step"]["key"] == "onboarding"


@pytest.mark.asyncio
async def test_callback_endpoint_uses_next_saved_at_login(client):
    app.dependency_overrides[get_identity_provider] = lambda: FakeIdentityProvider()
    state = await start_login(client, next="/billing")

    response = await client.get("/auth/callback", params={"code": "abc", "state": state})
    assert response.status_code == 303
    assert response.headers["location"] == "/billing"


@pytest.mark.asyncio
async def test_callback_endpoint_without_code_redirects_to_login(client):
    app.dependency_overrides[get_identity_provider] = lambda: FakeIdentityProvider()
    state = await start_login(client)

    response = await client.get("/auth/callback", params={"state": state})
    assert response.status_code == 303
    assert response.headers["location"] == "/login?error=missing_code"


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [
    {"code": "attacker-code", "state": "forged"},
    {"code": "attacker-code"},
])
async def test_callback_endpoint_rejects_unknown_state(client, params):
    provider = FakeIdentityProvider()
    app.dependency_overrides[get_identity_provider] = lambda: provider
    await start_login(client)

    response = await client.get("/auth/callback", params=params)
    assert response.status_code == 303
    assert response.headers["location"] == "/login?error=invalid_state"
    assert provider.codes == []

    page = await client.get("/dashboard")
    assert page.status_code == 303


@pytest.mark.asyncio
async def test_callback_endpoint_state_is_single_use(client):
    provider = FakeIdentityProvider()
    app.dependency_overrides[get_identity_provider] = lambda: provider
    state = await start_login(client)

    first = await client.get("/auth/callback", params={"code": "abc", "state": state})
    assert first.headers["location"] == "/profile"

    replay = await client.get("/auth/callback", params={"code": "abc", "state": state})
    assert replay.headers["location"] == "/login?error=invalid_state"
    assert provider.codes == ["abc"]


def test_session_cookie_is_secure_outside_development():
    options = next(m.kwargs for m in app.user_middleware if m.cls is SessionMiddleware)
    assert options["https_only"] is (not settings.is_development)
    # Tests run in development, over plain http
    assert options["https_only"] is False


@pytest.mark.asyncio
async def test_login_redirects_to_linkedin(client):
    response = await client.get("/auth/login/linkedin", params={"next": "/billing"})
    assert response.status_code == 302
    location = response.headers["location"]
    assert location.startswith("https://www.linkedin.com/oauth/v2/authorization")
    query = parse_qs(urlsplit(location).query)
    assert query["client_id"] == ["test-linkedin-client"]
    assert query["redirect_uri"] == ["http://test/auth/callback"]


@pytest.mark.asyncio
async def test_logout_revokes_session(client, login):
    headers = await login()

    response = await client.post("/auth/logout", headers=headers)
    assert response.status_code == 200
    assert response.json()["details"]["sessions_invalidated"] == 1

    response = await client.get("/api/profile", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_identity_provider_issues_session_for_linkedin_subject(db_session):
    provider = LinkedInIdentityProvider(client_id="id", client_secret="secret")
    with patch.object(provider, "exchange_code", AsyncMock(return_value={"access_token": "tok"})), \
            patch.object(provider, "fetch_userinfo", AsyncMock(return_value={"sub": "li-abc", "email": "a@b.co"})):
        auth_session = await provider.exchange_code_for_session(db_session, "code", REDIRECT_URI)

    assert auth_session.user_id == "li-abc"
    assert auth_session.email == "a@b.co"
    stored = await get_session_identity(db_session, auth_session.session_token)
    assert stored.user_id == "li-abc"


@pytest.mark.asyncio
async def test_identity_provider_requires_subject(db_session):
    provider = LinkedInIdentityProvider(client_id="id", client_secret="secret")
    with patch.object(provider, "exchange_code", AsyncMock(return_value={"access_token": "tok"})), \
            patch.object(provider, "fetch_userinfo", AsyncMock(return_value={"email": "a@b.co"})):
        with pytest.raises(UpstreamError):
            await provider.exchange_code_for_session(db_session, "code", REDIRECT_URI)
