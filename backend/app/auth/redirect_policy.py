"""
Where to send a user after login, and how to send them back to login.
"""
from typing import Optional
from urllib.parse import urlencode, urlsplit

from ..db.models.profile import Profile

LOGIN_PATH = "/login"
ONBOARDING_PATH = "/profile"
DASHBOARD_PATH = "/dashboard"


def safe_next_path(value: Optional[str]) -> Optional[str]:
    """
    Keep ``value`` only if it is a same-site relative path.

    Rejects absolute URLs and protocol-relative ``//host`` values so the
    ``next`` parameter cannot redirect off-site.
    """
    if not value:
        return None
    value = value.strip()
    if not value.startswith("/") or value.startswith("//") or "\\" in value:
        return None
    parts = urlsplit(value)
    if parts.scheme or parts.netloc:
        return None
    return value


def needs_onboarding(profile: Optional[Profile]) -> bool:
    """True when the contact email is blank or onboarding is not completed."""
    if profile is None:
        return True
    if not (profile.contact_email or "").strip():
        return True
    return not profile.onboarding_completed


def post_login_destination(profile: Optional[Profile], next_path: Optional[str] = None) -> str:
    """
    Path to redirect to once the session is established.

    An explicit, safe ``next`` path overrides the computed destination.
    """
    explicit = safe_next_path(next_path)
    if explicit:
        return explicit
    return ONBOARDING_PATH if needs_onboarding(profile) else DASHBOARD_PATH


def login_redirect_url(error: Optional[str] = None, next_path: Optional[str] = None) -> str:
    """``/login`` with an optional error indicator and ``next`` path."""
    params = {}
    if error:
        params["error"] = error
    next_path = safe_next_path(next_path)
    if next_path:
        params["next"] = next_path
    return f"{LOGIN_PATH}?{urlencode(params)}" if params else LOGIN_PATH
