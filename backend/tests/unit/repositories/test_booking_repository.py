# backend/tests/unit/repositories/test_booking_repository.py
"""Tests for BookingRepository queries."""

from datetime import timedelta

import pytest

from hourgym.core.enums import BookingStatus
from hourgym.models import Space
from hourgym.repositories.booking_repository import BookingRepository


@pytest.fixture
def repo(db):
    return BookingRepository(db)


class TestGetConfirmedInWindow:
    def test_only_confirmed_intersecting_bookings(self, repo, space, make_booking, now):
        inside = make_booking(now + timedelta(hours=2))
        make_booking(now + timedelta(hours=2), status=BookingStatus.CANCELLED)
        make_booking(now + timedelta(hours=10))

        rows = repo.get_confirmed_in_window(space.id, now, now + timedelta(hours=4))

        assert [b.id for b in rows] == [inside.id]

    def test_touching_window_edge_excluded(self, repo, space, make_booking, now):
        make_booking(now + timedelta(hours=4))

        assert repo.get_confirmed_in_window(space.id, now, now + timedelta(hours=4)) == []

    def test_scoped_to_space(self, db, repo, gym, space, make_booking, now):
        other = Space(gym_id=gym.id, name="Turf", space_type="turf", hourly_rate=3000)
        db.add(other)
        db.commit()
        make_booking(now + timedelta(hours=2), booking_space=other)

        assert repo.get_confirmed_in_window(space.id, now, now + timedelta(hours=4)) == []


class TestLookups:
    def test_get_by_payment_intent(self, repo, make_booking, now):
        booking = make_booking(now + timedelta(hours=2), payment_intent="pi_lookup")

        assert repo.get_by_payment_intent("pi_lookup").id == booking.id
        assert repo.get_by_payment_intent("pi_other") is None

    def test_get_by_checkout_session(self, db, repo, make_booking, now):
        booking = make_booking(now + timedelta(hours=2), payment_intent="pi_session")
        booking.stripe_checkout_session_id = "cs_lookup"
        db.commit()

        found = repo.get_by_checkout_session("cs_lookup")

        assert found.id == booking.id
        assert found.space.gym.name == "Ironworks Gym"
        assert repo.get_by_checkout_session("cs_other") is None

    def test_get_booking_with_details_loads_gym(self, repo, make_booking, now):
        booking = make_booking(now + timedelta(hours=2))

        loaded = repo.get_booking_with_details(booking.id)

        assert loaded.space.gym.name == "Ironworks Gym"
        assert loaded.renter.email == "renter@example.test"

    def test_renter_bookings_paginate(self, repo, renter, make_booking, now):
        for day in range(3):
            make_booking(now + timedelta(days=day + 1))

        page = repo.get_renter_bookings(renter.id, limit=2, offset=1)

        assert len(page) == 2
        assert page[0].start_at > page[1].start_at


class TestReminderMarker:
    def test_mark_reminder_sent_is_set_once(self, db, repo, make_booking, now):
        booking = make_booking(now + timedelta(hours=1))

        assert repo.mark_reminder_sent(booking.id, now) is True
        assert repo.mark_reminder_sent(booking.id, now + timedelta(minutes=5)) is False

        db.refresh(booking)
        assert booking.reminder_sent_at == now

    def test_due_for_reminder_skips_marked(self, repo, make_booking, now):
        marked = make_booking(now + timedelta(hours=1))
        unmarked = make_booking(now + timedelta(hours=1, minutes=5))
        repo.mark_reminder_sent(marked.id, now)

        due = repo.get_due_for_reminder(now, now + timedelta(hours=2))

        assert [b.id for b in due] == [unmarked.id]
