"""
View state for the server-rendered screens.

Everything except /login sits behind the page gate, which only checks that a
session exists; profile completion is judged per page.
"""
from typing import List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from ..auth.dependencies import get_page_profile_store, require_page_session
from ..auth.redirect_policy import safe_next_path
from ..core.config import settings
from ..core.profile_document import completion_percentage, normalize_document
from ..crud.profile import ProfileStore
from ..db.models.profile import Profile
from ..schemas.auth import LoginPage
from .schemas import (
    BillingPage,
    ConnectTelegramPage,
    DashboardPage,
    DashboardStep,
    ProfilePage,
)

public_router = APIRouter(tags=["Pages"])

router = APIRouter(
    tags=["Pages"],
    dependencies=[Depends(require_page_session)],
)

LINKEDIN_LOGIN_PATH = "/auth/login/linkedin"


def dashboard_steps(profile: Optional[Profile]) -> List[DashboardStep]:
    """
    Onboarding, then subscription, then Telegram. A step stays pending until
    the ones before it are done.
    """
    onboarding_done = bool(profile and profile.onboarding_completed)
    subscribed = bool(profile and profile.is_subscribed)
    telegram_connected = bool(profile and profile.telegram_chat_id)

    if not onboarding_done:
        subscription_status = "pending"
    else:
        subscription_status = "completed" if subscribed else "current"

    if not (onboarding_done and subscribed):
        telegram_status = "pending"
    else:
        telegram_status = "completed" if telegram_connected else "current"

    return [
        DashboardStep(
            key="onboarding",
            label="Complete your profile",
            status="completed" if onboarding_done else "current",
            href="/onboarding",
        ),
        DashboardStep(key="subscription", label="Subscribe to Pro", status=subscription_status, href="/billing"),
        DashboardStep(key="telegram", label="Connect Telegram", status=telegram_status, href="/connect-telegram"),
    ]


def next_dashboard_step(steps: List[DashboardStep]) -> Optional[DashboardStep]:
    for wanted in ("current", "pending"):
        for step in steps:
            if step.status == wanted:
                return step
    return None


def telegram_deep_link() -> Optional[str]:
    if not settings.TELEGRAM_BOT_USERNAME:
        return None
    return f"https://t.me/{settings.TELEGRAM_BOT_USERNAME.lstrip('@')}?start=1"


def _profile_page(profile: Optional[Profile]) -> ProfilePage:
    document = normalize_document(profile.profile_json if profile else None)
    return ProfilePage(
        onboarding_completed=bool(profile and profile.onboarding_completed),
        profile_json=document,
        completion=completion_percentage(document),
    )


@public_router.get("/login", response_model=LoginPage)
async def login_page(error: Optional[str] = None, next: Optional[str] = None):
    next_path = safe_next_path(next)
    login_url = LINKEDIN_LOGIN_PATH
    if next_path:
        login_url = f"{login_url}?{urlencode({'next': next_path})}"
    return LoginPage(login_url=login_url, error=error, next=next_path)


@router.get("/dashboard", response_model=DashboardPage)
async def dashboard_page(store: ProfileStore = Depends(get_page_profile_store)):
    profile = await store.get()
    steps = dashboard_steps(profile)
    return DashboardPage(
        email=(profile.contact_email or profile.email) if profile else store.email,
        plan=profile.plan if profile else "free",
        is_subscribed=bool(profile and profile.is_subscribed),
        steps=steps,
        next_step=next_dashboard_step(steps),
    )


@router.get("/onboarding", response_model=ProfilePage)
async def onboarding_page(store: ProfileStore = Depends(get_page_profile_store)):
    return _profile_page(await store.get())


@router.get("/profile", response_model=ProfilePage)
async def profile_page(store: ProfileStore = Depends(get_page_profile_store)):
    return _profile_page(await store.get())


@router.get("/billing", response_model=BillingPage)
async def billing_page(
    canceled: Optional[str] = None,
    store: ProfileStore = Depends(get_page_profile_store),
):
    profile = await store.get()
    if profile is None or not profile.onboarding_completed:
        return RedirectResponse(url="/onboarding", status_code=status.HTTP_303_SEE_OTHER)
    return BillingPage(is_subscribed=profile.is_subscribed, canceled=canceled == "1")


@router.get("/connect-telegram", response_model=ConnectTelegramPage)
async def connect_telegram_page(
    success: Optional[str] = None,
    store: ProfileStore = Depends(get_page_profile_store),
):
    profile = await store.get()
    return ConnectTelegramPage(
        telegram_url=telegram_deep_link(),
        connected=bool(profile and profile.telegram_chat_id),
        telegram_chat_id=profile.telegram_chat_id if profile else None,
        is_subscribed=bool(profile and profile.is_subscribed),
        success=success == "1",
    )
