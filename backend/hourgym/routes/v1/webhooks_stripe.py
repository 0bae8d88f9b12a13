"""
Stripe Webhook Endpoints

Verifies the signature and dispatches:
- checkout.session.completed: create the confirmed booking
- charge.refunded: mirror the refunded amount onto the booking
- account.updated: track the gym's payout onboarding

A checkout that lost its slot to a concurrent booking, or whose space or
renter is gone, is refunded by the booking service and acknowledged with 200
so Stripe does not redeliver it.
"""

import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from ...api.dependencies import get_booking_service, get_stripe_service
from ...core.exceptions import CheckoutRefundedException
from ...schemas.webhooks import WebhookResponse
from ...services.booking_service import BookingService
from ...services.stripe_service import StripeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stripe-webhooks"])


@router.post("/stripe", response_model=WebhookResponse)
async def handle_stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
    booking_service: BookingService = Depends(get_booking_service),
) -> WebhookResponse:
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    event = stripe_service.construct_event(payload, signature)

    event_type: str = event.get("type", "")
    data_object: Dict[str, Any] = (event.get("data") or {}).get("object") or {}
    logger.info(f"Processing Stripe webhook event: {event_type} ({event.get('id')})")

    if event_type == "checkout.session.completed":
        try:
            booking = await asyncio.to_thread(booking_service.complete_checkout, data_object)
        except CheckoutRefundedException as exc:
            logger.warning(f"Checkout {data_object.get('id')} not fulfilled ({exc.code}) and was refunded")
            return WebhookResponse(status="refunded", event_type=event_type, message=exc.message)
        if booking is None:
            return WebhookResponse(status="ignored", event_type=event_type)
        return WebhookResponse(status="success", event_type=event_type, message=booking.id)

    if event_type == "charge.refunded":
        payment_intent_id = data_object.get("payment_intent")
        if not payment_intent_id:
            return WebhookResponse(status="ignored", event_type=event_type)
        await asyncio.to_thread(
            booking_service.record_refund,
            payment_intent_id,
            int(data_object.get("amount_refunded") or 0),
        )
        return WebhookResponse(status="success", event_type=event_type)

    if event_type == "account.updated":
        gym = await asyncio.to_thread(stripe_service.handle_account_updated, data_object)
        return WebhookResponse(status="success" if gym else "ignored", event_type=event_type)

    logger.info(f"Unhandled webhook event type: {event_type}")
    return WebhookResponse(status="ignored", event_type=event_type)
