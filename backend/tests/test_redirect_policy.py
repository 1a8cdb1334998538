"""
Tests for post-login routing (app.auth.redirect_policy).
"""
import pytest

from app.auth.redirect_policy import (
    DASHBOARD_PATH,
    ONBOARDING_PATH,
    login_redirect_url,
    needs_onboarding,
    post_login_destination,
    safe_next_path,
)
from app.crud.profile import new_profile


def make_profile(contact_email=None, onboarding_completed=False):
    profile = new_profile("li-user-1", "user@example.com")
    profile.contact_email = contact_email
    profile.onboarding_completed = onboarding_completed
    return profile


@pytest.mark.parametrize("value,expected", [
    ("/billing", "/billing"),
    ("/profile?step=3", "/profile?step=3"),
    ("  /dashboard ", "/dashboard"),
    (None, None),
    ("", None),
    ("dashboard", None),
    ("//evil.example.com/path", None),
    ("https://evil.example.com/", None),
    ("/\\evil.example.com", None),
])
def test_safe_next_path(value, expected):
    assert safe_next_path(value) == expected


def test_missing_profile_needs_onboarding():
    assert needs_onboarding(None) is True


@pytest.mark.parametrize("contact_email,onboarding_completed,expected", [
    (None, False, True),
    ("", True, True),
    ("   ", True, True),
    ("me@example.com", False, True),
    ("me@example.com", True, False),
])
def test_needs_onboarding(contact_email, onboarding_completed, expected):
    profile = make_profile(contact_email, onboarding_completed)
    assert needs_onboarding(profile) is expected


def test_destination_for_incomplete_profile_is_onboarding():
    assert post_login_destination(make_profile()) == ONBOARDING_PATH


def test_destination_for_complete_profile_is_dashboard():
    profile = make_profile("me@example.com", True)
    assert post_login_destination(profile) == DASHBOARD_PATH


def test_explicit_next_overrides_destination():
    assert post_login_destination(make_profile(), "/billing") == "/billing"
    assert post_login_destination(make_profile("me@example.com", True), "/profile") == "/profile"


def test_unsafe_next_is_ignored():
    profile = make_profile("me@example.com", True)
    assert post_login_destination(profile, "https://evil.example.com") == DASHBOARD_PATH


def test_login_redirect_url():
    assert login_redirect_url() == "/login"
    assert login_redirect_url(error="missing_code") == "/login?error=missing_code"
    assert login_redirect_url(next_path="/billing") == "/login?next=%2Fbilling"
    assert login_redirect_url(error="access denied") == "/login?error=access+denied"
