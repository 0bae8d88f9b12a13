"""Webhook acknowledgement schema."""

from typing import Optional

from .base import StrictModel


class WebhookResponse(StrictModel):
    status: str
    event_type: str
    message: Optional[str] = None
