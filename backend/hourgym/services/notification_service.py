# backend/hourgym/services/notification_service.py
"""
Notification intents for booking lifecycle events.

Intents are written to the event outbox inside the caller's transaction, so a
notification exists if and only if the booking change committed. Delivery is
done later by the outbox worker and its failures never reach the caller.

Payloads carry ready-to-render values (names, local times, formatted
amounts); the provider only fills templates.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import CancelledBy
from ..core.timezone_utils import ensure_utc, get_timezone
from ..models.booking import Booking
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .pricing import format_cents

logger = logging.getLogger(__name__)

BOOKING_CONFIRMED = "booking.confirmed"
BOOKING_OWNER_NOTIFIED = "booking.owner_notified"
BOOKING_CANCELLED = "booking.cancelled"
BOOKING_REMINDER = "booking.reminder"

EVENT_TYPES = (BOOKING_CONFIRMED, BOOKING_OWNER_NOTIFIED, BOOKING_CANCELLED, BOOKING_REMINDER)


def _local(dt: datetime, tz_name: Optional[str]) -> datetime:
    return ensure_utc(dt).astimezone(get_timezone(tz_name))


def format_date_label(dt: datetime, tz_name: Optional[str]) -> str:
    """'Monday, June 15' in the gym's timezone."""
    local = _local(dt, tz_name)
    return f"{local.strftime('%A, %B')} {local.day}"


def format_time_label(dt: datetime, tz_name: Optional[str]) -> str:
    """'9:00 AM' in the gym's timezone."""
    return _local(dt, tz_name).strftime("%I:%M %p").lstrip("0")


class NotificationService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.outbox_repository = RepositoryFactory.create_event_outbox_repository(db)

    def _booking_context(self, booking: Booking) -> Dict[str, Any]:
        space = booking.space
        gym = space.gym
        tz_name = gym.timezone
        return {
            "booking_id": booking.id,
            "space_name": space.name,
            "gym_name": gym.name,
            "date_label": format_date_label(booking.start_at, tz_name),
            "start_time": format_time_label(booking.start_at, tz_name),
            "end_time": format_time_label(booking.end_at, tz_name),
            "address": gym.address,
            "entry_instructions": space.entry_instructions,
            "contact_name": gym.contact_name,
            "contact_phone": gym.contact_phone,
            "total_formatted": format_cents(booking.total_amount),
            "booking_url": f"{settings.frontend_url}/bookings/{booking.id}",
        }

    @staticmethod
    def _recipient(user: User) -> Dict[str, Any]:
        return {
            "recipient_id": user.id,
            "recipient_email": user.email,
            "recipient_name": user.full_name,
            "recipient_phone": user.phone if user.can_receive_sms else None,
        }

    def _enqueue(self, event_type: str, booking: Booking, recipient: User, payload: Dict[str, Any]) -> None:
        key = f"booking:{booking.id}:{event_type}:{recipient.id}"
        self.outbox_repository.enqueue(
            event_type=event_type,
            aggregate_id=booking.id,
            payload={**payload, **self._recipient(recipient)},
            idempotency_key=key,
        )
        self.logger.info("Queued %s for booking %s", event_type, booking.id)

    def booking_confirmed(self, booking: Booking) -> None:
        """Renter confirmation plus the gym owner's new-booking notice."""
        context = self._booking_context(booking)
        self._enqueue(BOOKING_CONFIRMED, booking, booking.renter, context)

        owner = booking.space.gym.owner
        if owner is not None:
            renter = booking.renter
            self._enqueue(
                BOOKING_OWNER_NOTIFIED,
                booking,
                owner,
                {
                    **context,
                    "renter_name": renter.full_name,
                    "renter_email": renter.email,
                    "gym_payout_formatted": format_cents(booking.gym_payout),
                },
            )

    def booking_cancelled(
        self, booking: Booking, refund_amount: int, cancelled_by: CancelledBy
    ) -> None:
        context = self._booking_context(booking)
        self._enqueue(
            BOOKING_CANCELLED,
            booking,
            booking.renter,
            {
                **context,
                "refund_amount": refund_amount,
                "refund_formatted": format_cents(refund_amount),
                "cancelled_by_gym": CancelledBy(cancelled_by) is CancelledBy.GYM_OWNER,
            },
        )

    def booking_reminder(self, booking: Booking) -> None:
        self._enqueue(BOOKING_REMINDER, booking, booking.renter, self._booking_context(booking))
