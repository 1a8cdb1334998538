import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from .callback_flow import OAuthCallbackFlow
from .identity import LinkedInIdentityProvider, get_identity_provider
from .oauth import oauth
from .redirect_policy import login_redirect_url, safe_next_path
from ..core.config import settings
from ..core.security import SESSION_COOKIE_KEY, extract_session_token, revoke_session
from ..db.session import get_db
from ..schemas.auth import LogoutResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Session key holding the post-login path between /login/linkedin and /callback
LOGIN_NEXT_KEY = "login_next"


def build_redirect_uri(request: Request) -> str:
    """
    Callback URL sent to LinkedIn. Must be identical for the authorize
    redirect and the code exchange.
    """
    if settings.PUBLIC_APP_URL and settings.PUBLIC_APP_URL.strip():
        return f"{settings.PUBLIC_APP_URL.rstrip('/')}/auth/callback"

    redirect_uri = str(request.url_for('auth_callback'))
    # Behind an HTTPS proxy the request itself arrives over http
    if request.headers.get('x-forwarded-proto') == 'https' and redirect_uri.startswith('http://'):
        redirect_uri = redirect_uri.replace('http://', 'https://', 1)
    return redirect_uri


async def verify_oauth_state(request: Request) -> bool:
    """
    Check the callback's ``state`` against the one authlib saved in the
    session at the authorize redirect. The saved state is single use.
    """
    state = request.query_params.get("state")
    if not state:
        return False

    framework = oauth.linkedin.framework
    state_data = await framework.get_state_data(request.session, state)
    await framework.clear_state_data(request.session, state)
    return state_data is not None


@router.get("/login/linkedin", tags=["Authentication"])
async def login_linkedin(request: Request, next: Optional[str] = None):
    """Redirect user to LinkedIn for authorization."""
    next_path = safe_next_path(next)
    if next_path:
        request.session[LOGIN_NEXT_KEY] = next_path
    else:
        request.session.pop(LOGIN_NEXT_KEY, None)

    redirect_uri = build_redirect_uri(request)
    logger.info(f"[LOGIN] Redirecting to LinkedIn, redirect_uri={redirect_uri}")
    return await oauth.linkedin.authorize_redirect(request, redirect_uri)


@router.get("/callback", name="auth_callback", tags=["Authentication"])
async def auth_callback(
    request: Request,
    code: Optional[str] = None,
    error: Optional[str] = None,
    next: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    provider: LinkedInIdentityProvider = Depends(get_identity_provider),
):
    """
    Handle the redirect back from LinkedIn.

    Exchanges the code for a session, resolves the profile and redirects to
    onboarding or the dashboard. Any failure lands on /login with an
    ``error`` query parameter.
    """
    next_path = next or request.session.pop(LOGIN_NEXT_KEY, None)
    flow = OAuthCallbackFlow(db, provider, build_redirect_uri(request))

    try:
        result = await flow.run(
            code=code,
            error=error,
            next_path=next_path,
            state_verified=await verify_oauth_state(request),
        )
    except Exception:
        logger.exception("[CALLBACK] Unexpected error during login")
        await db.rollback()
        return RedirectResponse(
            url=login_redirect_url(error="unexpected_error"),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    if result.succeeded:
        request.session[SESSION_COOKIE_KEY] = result.session.session_token

    return RedirectResponse(url=result.redirect_url, status_code=status.HTTP_303_SEE_OTHER)


@router.post("/logout", response_model=LogoutResponse, tags=["Authentication"])
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Log out the user by invalidating their session token.
    """
    token = extract_session_token(request)
    request.session.pop(SESSION_COOKIE_KEY, None)

    if not token:
        return {"ok": True, "message": "No active session"}

    deleted_count = await revoke_session(db, token)
    return {
        "ok": True,
        "message": "Logged out successfully",
        "details": {"sessions_invalidated": deleted_count},
    }
