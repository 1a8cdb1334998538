"""
Version management for the Linkaday API
"""
from app.__version__ import __version__
from app.core.config import settings


def get_features():
    """Optional integrations, on when their configuration is present"""
    return {
        "stripe_checkout": not settings.missing_stripe_checkout_settings(),
        "stripe_webhook": bool(settings.STRIPE_WEBHOOK_SECRET),
        "n8n_export": bool(settings.N8N_PROFILE_WEBHOOK_URL),
        "telegram": bool(settings.TELEGRAM_BOT_USERNAME),
    }


def get_version_info():
    """Get version and feature information"""
    return {
        "version": __version__,
        "features": get_features(),
    }
