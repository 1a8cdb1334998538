"""
Schemas for checkout and the payment webhook.
"""
from pydantic import BaseModel, Field


class CheckoutResponse(BaseModel):
    ok: bool = True
    url: str = Field(..., description="Hosted checkout page to redirect the user to")


class WebhookAck(BaseModel):
    """Sent for every event whose signature verified."""
    received: bool = True
