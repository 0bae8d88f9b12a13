# backend/hourgym/repositories/booking_repository.py
"""
Booking Repository for HourGym

Every conflict-relevant query filters to confirmed bookings. Cancelled
bookings never block a slot, and "completed" is derived from the clock rather
than stored.
"""

from datetime import datetime
import logging
from typing import Any, List, Optional, cast

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.gym import Space
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    # Conflict queries

    def get_confirmed_in_window(
        self,
        space_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> List[Booking]:
        """
        Confirmed bookings for a space whose interval intersects [window_start, window_end).

        Callers pad the window by the buffer so buffered neighbours are included.
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.space_id == space_id,
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.start_at < window_end,
                Booking.end_at > window_start,
            )
            return cast(List[Booking], query.order_by(Booking.start_at).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for space {space_id}: {str(e)}")
            raise RepositoryException(f"Failed to get bookings for conflict check: {str(e)}")

    # Lookups

    def get_booking_with_details(self, booking_id: str) -> Optional[Booking]:
        return self._get_with_details(Booking.id == booking_id, booking_id)

    def get_by_checkout_session(self, checkout_session_id: str) -> Optional[Booking]:
        return self._get_with_details(
            Booking.stripe_checkout_session_id == checkout_session_id, checkout_session_id
        )

    def _get_with_details(self, criterion: Any, label: str) -> Optional[Booking]:
        try:
            return (
                self.db.query(Booking)
                .options(
                    joinedload(Booking.renter),
                    joinedload(Booking.space).joinedload(Space.gym),
                )
                .filter(criterion)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking {label}: {str(e)}")
            raise RepositoryException(f"Failed to get booking: {str(e)}")

    def get_by_payment_intent(self, payment_intent_id: str) -> Optional[Booking]:
        return self.find_one_by(stripe_payment_intent_id=payment_intent_id)

    def get_renter_bookings(
        self, renter_id: str, limit: int = 50, offset: int = 0
    ) -> List[Booking]:
        """Renter's bookings, most recent start first."""
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .options(joinedload(Booking.space).joinedload(Space.gym))
                .filter(Booking.renter_id == renter_id)
                .order_by(Booking.start_at.desc())
                .offset(offset)
                .limit(limit)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for renter {renter_id}: {str(e)}")
            raise RepositoryException(f"Failed to get renter bookings: {str(e)}")

    # Mutations

    def record_refund(self, payment_intent_id: str, amount_refunded: int) -> Optional[Booking]:
        booking = self.get_by_payment_intent(payment_intent_id)
        if booking is None:
            return None
        booking.refund_amount = amount_refunded
        self.db.flush()
        return booking

    # Reminders

    def get_due_for_reminder(self, window_start: datetime, window_end: datetime) -> List[Booking]:
        """Confirmed bookings starting in [window_start, window_end] with no reminder sent."""
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .filter(
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.start_at >= window_start,
                    Booking.start_at <= window_end,
                    Booking.reminder_sent_at.is_(None),
                )
                .order_by(Booking.start_at)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings due for reminder: {str(e)}")
            raise RepositoryException(f"Failed to get reminder bookings: {str(e)}")

    def mark_reminder_sent(self, booking_id: str, sent_at: datetime) -> bool:
        """Set the reminder marker once. Returns False if another worker set it first."""
        result = self.db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.reminder_sent_at.is_(None))
            .values(reminder_sent_at=sent_at)
            .execution_options(synchronize_session=False)
        )
        self.db.flush()
        return bool(result.rowcount)
