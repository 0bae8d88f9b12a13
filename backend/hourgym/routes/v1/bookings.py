# backend/hourgym/routes/v1/bookings.py
"""
Booking routes - API v1

Checkout, listing and cancellation for renters, mounted under
/api/v1/bookings. Booking rows are created by the payment webhook, not here.
"""

import asyncio
from datetime import datetime, timezone
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_booking_service, get_current_user
from ...core.constants import BOOKINGS_PER_PAGE
from ...models.booking import Booking
from ...models.user import User
from ...schemas.booking import (
    BookingListResponse,
    BookingResponse,
    CancelBookingResponse,
    CheckoutRequest,
    CheckoutResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])


def _booking_response(booking: Booking, now: Optional[datetime] = None) -> BookingResponse:
    space = booking.space
    return BookingResponse(
        id=booking.id,
        space_id=booking.space_id,
        space_name=space.name if space else None,
        gym_name=space.gym.name if space and space.gym else None,
        renter_id=booking.renter_id,
        start_at=booking.start_at,
        end_at=booking.end_at,
        status=BookingService.derive_status(booking, now),
        total_amount=booking.total_amount,
        platform_fee=booking.platform_fee,
        gym_payout=booking.gym_payout,
        currency=booking.currency,
        refund_amount=booking.refund_amount,
        cancelled_at=booking.cancelled_at,
        cancelled_by=booking.cancelled_by,
    )


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Waiver not accepted"},
        404: {"description": "Space not found"},
        422: {"description": "Past start, duration out of bounds, or conflicting booking"},
    },
)
async def create_checkout(
    payload: CheckoutRequest = Body(...),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> CheckoutResponse:
    """
    Open a payment session for the requested interval.

    The booking is confirmed once the payment completes.
    """
    session = await asyncio.to_thread(
        booking_service.create_checkout,
        current_user,
        payload.space_id,
        payload.start_at.astimezone(timezone.utc),
        payload.end_at.astimezone(timezone.utc),
        payload.waiver_accepted,
    )
    return CheckoutResponse(checkout_url=session.url, session_id=session.id)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    limit: int = Query(BOOKINGS_PER_PAGE, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """The current renter's bookings, most recent start first."""
    bookings = await asyncio.to_thread(
        booking_service.list_renter_bookings, current_user, limit, offset
    )
    now = datetime.now(timezone.utc)
    return BookingListResponse(
        bookings=[_booking_response(b, now) for b in bookings],
        limit=limit,
        offset=offset,
    )


@router.get("/checkout-sessions/{session_id}", response_model=BookingResponse)
async def get_booking_by_checkout_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """The booking a paid checkout created. 404 BOOKING_PENDING until the payment webhook lands."""
    booking = await asyncio.to_thread(
        booking_service.get_booking_by_checkout_session, current_user, session_id
    )
    return _booking_response(booking)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await asyncio.to_thread(booking_service.get_booking, current_user, booking_id)
    return _booking_response(booking)


@router.post(
    "/{booking_id}/cancel",
    response_model=CancelBookingResponse,
    responses={
        403: {"description": "Not the renter or the gym owner"},
        422: {"description": "Already cancelled or already started"},
    },
)
async def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> CancelBookingResponse:
    booking = await asyncio.to_thread(booking_service.cancel_booking, current_user, booking_id)
    return CancelBookingResponse(
        booking_id=booking.id,
        status=booking.status,
        refund_amount=booking.refund_amount or 0,
        refund_id=booking.stripe_refund_id,
    )
