"""Stripe integration: checkout session creation and webhook verification.

The webhook side never touches the request's own session; it only reads a
verified event and hands the user id to the privileged profile store.
"""
import json
import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import stripe

from app.core.config import settings
from app.core.exceptions import ConfigurationError, PaymentError
from app.db.models.profile import Profile

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


class SignatureStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    MALFORMED = "malformed"


def verify_webhook_signature(
    payload: bytes,
    signature: Optional[str],
    secret: str,
) -> Tuple[SignatureStatus, Optional[Dict[str, Any]]]:
    """
    Check a webhook payload against its ``Stripe-Signature`` header.

    Returns:
        (status, event): event is the decoded payload, only set when VALID
    """
    if not signature or not signature.strip():
        return SignatureStatus.MALFORMED, None

    try:
        stripe.Webhook.construct_event(payload, signature, secret)
    except ValueError:
        logger.warning("[WEBHOOK] Payload is not valid JSON")
        return SignatureStatus.INVALID, None
    except stripe.SignatureVerificationError:
        logger.warning("[WEBHOOK] Signature verification failed")
        return SignatureStatus.INVALID, None

    return SignatureStatus.VALID, json.loads(payload)


def get_user_id_from_checkout_session(session: Dict[str, Any]) -> Optional[str]:
    """User id from ``metadata.user_id``, falling back to ``client_reference_id``."""
    metadata = session.get("metadata") or {}
    user_id = metadata.get("user_id") or session.get("client_reference_id")
    return str(user_id) if user_id else None


def create_checkout_session(profile: Profile) -> str:
    """
    Create a subscription checkout session for a profile.

    Returns:
        str: URL of the hosted checkout page

    Raises:
        ConfigurationError: when Stripe keys, price or public URL are missing
        PaymentError: when Stripe rejects the request
    """
    missing = settings.missing_stripe_checkout_settings()
    if missing:
        logger.error(f"[CHECKOUT] Missing configuration: {', '.join(missing)}")
        raise ConfigurationError("Stripe is not configured", details={"missing": missing})

    base_url = settings.PUBLIC_APP_URL.rstrip("/")
    email = profile.contact_email or profile.email

    session_params = {
        "mode": "subscription",
        "line_items": [{"price": settings.STRIPE_PRICE_ID, "quantity": 1}],
        "success_url": f"{base_url}/connect-telegram?success=1",
        "cancel_url": f"{base_url}/billing?canceled=1",
        "client_reference_id": profile.id,
        "metadata": {"user_id": profile.id, "email": email or ""},
        "api_key": settings.STRIPE_SECRET_KEY,
    }
    if email:
        session_params["customer_email"] = email

    try:
        session = stripe.checkout.Session.create(**session_params)
    except stripe.StripeError as e:
        logger.error(f"[CHECKOUT] Stripe error for {profile.id}: {e}")
        raise PaymentError("Could not create checkout session", details=str(e)) from e

    logger.info(f"[CHECKOUT] Created checkout session {session.id} for {profile.id}")
    return session.url
