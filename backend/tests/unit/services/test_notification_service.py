# backend/tests/unit/services/test_notification_service.py
"""Tests for notification intents written to the event outbox."""

from datetime import datetime, timedelta, timezone

import pytest

from hourgym.core.enums import CancelledBy
from hourgym.models import EventOutbox
from hourgym.services.notification_service import (
    BOOKING_CANCELLED,
    BOOKING_CONFIRMED,
    BOOKING_OWNER_NOTIFIED,
    BOOKING_REMINDER,
    NotificationService,
    format_date_label,
    format_time_label,
)

START = datetime(2030, 6, 17, 15, 0, tzinfo=timezone.utc)  # Monday 09:00 MDT


@pytest.fixture
def service(db):
    return NotificationService(db)


def _events(db, event_type):
    return db.query(EventOutbox).filter(EventOutbox.event_type == event_type).all()


class TestLabels:
    def test_date_label_in_gym_timezone(self):
        assert format_date_label(START, "America/Denver") == "Monday, June 17"

    def test_date_label_crosses_midnight(self):
        # 03:00 UTC Tuesday is still Monday evening in Denver
        late = datetime(2030, 6, 18, 3, 0, tzinfo=timezone.utc)

        assert format_date_label(late, "America/Denver") == "Monday, June 17"

    def test_time_label(self):
        assert format_time_label(START, "America/Denver") == "9:00 AM"
        assert format_time_label(START + timedelta(hours=5), "America/Denver") == "2:00 PM"


class TestBookingConfirmed:
    def test_renter_and_owner_intents(self, db, service, make_booking, renter, owner):
        booking = make_booking(START, hours=2)

        service.booking_confirmed(booking)
        db.commit()

        renter_event = _events(db, BOOKING_CONFIRMED)[0]
        assert renter_event.aggregate_id == booking.id
        assert renter_event.idempotency_key == f"booking:{booking.id}:{BOOKING_CONFIRMED}:{renter.id}"
        payload = renter_event.payload
        assert payload["recipient_email"] == renter.email
        assert payload["recipient_phone"] == renter.phone
        assert payload["space_name"] == "Mat Room"
        assert payload["gym_name"] == "Ironworks Gym"
        assert payload["date_label"] == "Monday, June 17"
        assert payload["start_time"] == "9:00 AM"
        assert payload["end_time"] == "11:00 AM"
        assert payload["total_formatted"] == "$100.00"
        assert payload["entry_instructions"] == "Use the side door, code 4321"

        owner_event = _events(db, BOOKING_OWNER_NOTIFIED)[0]
        assert owner_event.payload["recipient_email"] == owner.email
        assert owner_event.payload["renter_name"] == renter.full_name
        assert owner_event.payload["gym_payout_formatted"] == "$85.00"

    def test_owner_without_sms_opt_in_has_no_phone(self, db, service, make_booking):
        booking = make_booking(START)

        service.booking_confirmed(booking)
        db.commit()

        assert _events(db, BOOKING_OWNER_NOTIFIED)[0].payload["recipient_phone"] is None

    def test_enqueue_is_idempotent(self, db, service, make_booking):
        booking = make_booking(START)

        service.booking_confirmed(booking)
        service.booking_confirmed(booking)
        db.commit()

        assert db.query(EventOutbox).count() == 2


class TestOtherEvents:
    def test_cancelled_with_refund(self, db, service, make_booking):
        booking = make_booking(START)

        service.booking_cancelled(booking, 5000, CancelledBy.RENTER)
        db.commit()

        payload = _events(db, BOOKING_CANCELLED)[0].payload
        assert payload["refund_amount"] == 5000
        assert payload["refund_formatted"] == "$50.00"
        assert payload["cancelled_by_gym"] is False

    def test_reminder(self, db, service, make_booking, renter):
        booking = make_booking(START)

        service.booking_reminder(booking)
        db.commit()

        events = _events(db, BOOKING_REMINDER)
        assert len(events) == 1
        assert events[0].payload["recipient_id"] == renter.id
        assert events[0].payload["contact_phone"] == "303-555-0123"
