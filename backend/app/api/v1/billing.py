"""
API endpoints for Stripe checkout and the Stripe webhook.
"""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_profile_store
from app.core.config import settings
from app.core.exceptions import ConfigurationError, PreconditionFailed, SignatureError
from app.crud.profile import AdminProfileStore, ProfileStore
from app.db.session import get_admin_db
from app.schemas.billing import CheckoutResponse, WebhookAck
from app.services.stripe_service import (
    CHECKOUT_COMPLETED,
    SignatureStatus,
    create_checkout_session,
    get_user_id_from_checkout_session,
    verify_webhook_signature,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/stripe",
    tags=["billing"],
)


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(store: ProfileStore = Depends(get_profile_store)):
    """
    Start a Pro subscription checkout for the caller.

    Requires completed onboarding and no active Pro plan.
    """
    profile = await store.get()
    if profile is None or not profile.onboarding_completed:
        raise PreconditionFailed("Complete onboarding before subscribing")
    if profile.is_subscribed:
        raise PreconditionFailed("Already subscribed")

    url = create_checkout_session(profile)
    return CheckoutResponse(url=url)


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_admin_db)):
    """
    Handle Stripe events.

    Once the signature is verified the event is always acknowledged, even if
    applying it fails, so Stripe does not redeliver it.
    """
    secret = settings.STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error("[WEBHOOK] STRIPE_WEBHOOK_SECRET is not set")
        raise ConfigurationError("Stripe webhook is not configured", details={"missing": ["STRIPE_WEBHOOK_SECRET"]})

    payload = await request.body()
    signature_status, event = verify_webhook_signature(
        payload, request.headers.get("stripe-signature"), secret
    )
    if signature_status is SignatureStatus.MALFORMED:
        raise SignatureError("Missing stripe-signature header")
    if signature_status is not SignatureStatus.VALID:
        raise SignatureError()

    if not isinstance(event, dict):
        logger.warning("[WEBHOOK] Verified payload is not an event object")
        return WebhookAck()

    event_type = event.get("type")
    logger.info(f"[WEBHOOK] Received {event_type} ({event.get('id')})")

    if event_type != CHECKOUT_COMPLETED:
        return WebhookAck()

    try:
        checkout_session = (event.get("data") or {}).get("object") or {}
        user_id = get_user_id_from_checkout_session(checkout_session)
        if not user_id:
            logger.warning(f"[WEBHOOK] No user id on checkout session {checkout_session.get('id')}")
            return WebhookAck()

        activated = await AdminProfileStore(db).activate_pro_plan(user_id)
        if activated:
            logger.info(f"[WEBHOOK] Activated Pro plan for {user_id}")
        else:
            logger.warning(f"[WEBHOOK] No profile for {user_id}; plan not changed")
    except Exception:
        logger.exception("[WEBHOOK] Failed to apply checkout.session.completed")
        await db.rollback()

    return WebhookAck()
