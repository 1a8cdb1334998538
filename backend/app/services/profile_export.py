"""Export of the profile document to the n8n automation webhook."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

import httpx

from app.core.config import settings
from app.core.exceptions import PreconditionFailed, UpstreamError
from app.db.models.profile import Profile

logger = logging.getLogger(__name__)

EXPORT_TIMEOUT = 15.0


def build_export_payload(profile: Profile) -> Dict[str, Any]:
    return {
        "user_id": profile.id,
        "email": profile.contact_email or profile.email,
        "profile_json": profile.profile_json,
        "exported_at": datetime.now(timezone.utc).isoformat(),
    }


async def post_to_webhook(url: str, payload: Dict[str, Any]) -> httpx.Response:
    async with httpx.AsyncClient(timeout=EXPORT_TIMEOUT) as client:
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return response


async def export_profile(profile: Profile) -> None:
    """
    Send a profile document to the configured automation webhook.

    Raises:
        PreconditionFailed: no document data, or no webhook URL configured
        UpstreamError: the webhook could not be reached or answered an error
    """
    if not profile.profile_json or not any(profile.profile_json.values()):
        raise PreconditionFailed("No profile_json data to export")

    url = settings.N8N_PROFILE_WEBHOOK_URL
    if not url:
        logger.warning("[EXPORT] N8N_PROFILE_WEBHOOK_URL is not set")
        raise PreconditionFailed("N8N_PROFILE_WEBHOOK_URL not configured")

    try:
        await post_to_webhook(url, build_export_payload(profile))
    except httpx.HTTPStatusError as e:
        logger.error(f"[EXPORT] Webhook answered {e.response.status_code} for {profile.id}")
        raise UpstreamError("Export failed", details=e.response.text) from e
    except httpx.RequestError as e:
        logger.error(f"[EXPORT] Webhook request failed for {profile.id}: {e}")
        raise UpstreamError("Export failed", details=str(e)) from e

    logger.info(f"[EXPORT] Exported profile {profile.id}")
