# backend/tests/unit/services/test_availability_service.py
"""
Tests for AvailabilityService against an in-memory database.

Covers slot lookup across templates, overrides and stored bookings, plus the
owner-only template and override management.
"""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from hourgym.core.enums import BookingStatus
from hourgym.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from hourgym.models import AvailabilityOverride, AvailabilityTemplate
from hourgym.services.availability_service import AvailabilityService

MONDAY = date(2030, 6, 17)


def _utc(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def service(db):
    return AvailabilityService(db)


@pytest.fixture
def monday_template(db, space):
    template = AvailabilityTemplate(
        space_id=space.id, day_of_week=1, start_time=time(8), end_time=time(14)
    )
    db.add(template)
    db.commit()
    return template


class TestGetSlotsForDate:
    def test_slots_from_template(self, service, space, monday_template, now):
        slots = service.get_slots_for_date(space.id, MONDAY, now=now)

        assert len(slots) == 6
        assert slots[0].start == _utc(14)
        assert all(slot.available for slot in slots)

    def test_confirmed_booking_and_buffer_block_slots(
        self, service, space, monday_template, make_booking, now
    ):
        make_booking(_utc(16))  # 10:00-11:00 local

        slots = service.get_slots_for_date(space.id, MONDAY, now=now)

        assert [s.available for s in slots] == [True, False, False, False, True, True]

    def test_cancelled_booking_ignored(self, service, space, monday_template, make_booking, now):
        make_booking(_utc(16), status=BookingStatus.CANCELLED)

        slots = service.get_slots_for_date(space.id, MONDAY, now=now)

        assert all(slot.available for slot in slots)

    def test_booking_before_midnight_blocks_first_slot(self, db, service, space, make_booking, now):
        db.add(
            AvailabilityTemplate(
                space_id=space.id, day_of_week=2, start_time=time(0), end_time=time(3)
            )
        )
        db.commit()
        tuesday = MONDAY + timedelta(days=1)
        # Monday 23:00-23:45 local ends 15 minutes before Tuesday midnight
        make_booking(_utc(5, day=tuesday), hours=0.75)

        slots = service.get_slots_for_date(space.id, tuesday, now=now)

        assert [s.available for s in slots] == [False, True, True]

    def test_whole_day_override(self, db, service, space, monday_template, now):
        db.add(AvailabilityOverride(space_id=space.id, date=MONDAY, blocked=True))
        db.commit()

        assert service.get_slots_for_date(space.id, MONDAY, now=now) == []

    def test_unknown_space(self, service, now):
        with pytest.raises(NotFoundException) as exc_info:
            service.get_slots_for_date("missing", MONDAY, now=now)

        assert exc_info.value.code == "SPACE_NOT_FOUND"

    def test_inactive_space_not_found(self, db, service, space, now):
        space.is_active = False
        db.commit()

        with pytest.raises(NotFoundException):
            service.get_slots_for_date(space.id, MONDAY, now=now)


class TestTemplateManagement:
    def test_owner_adds_template(self, db, service, owner, space):
        template = service.set_weekly_template(owner, space.id, 3, time(6), time(10))

        assert template.id
        stored = db.get(AvailabilityTemplate, template.id)
        assert stored.day_of_week == 3
        assert stored.start_time == time(6)

    def test_non_owner_rejected(self, service, other_user, space):
        with pytest.raises(ForbiddenException) as exc_info:
            service.set_weekly_template(other_user, space.id, 3, time(6), time(10))

        assert exc_info.value.code == "NOT_SPACE_OWNER"

    def test_inverted_window_rejected(self, service, owner, space):
        with pytest.raises(ValidationException) as exc_info:
            service.set_weekly_template(owner, space.id, 3, time(10), time(6))

        assert exc_info.value.code == "INVALID_TEMPLATE"

    def test_remove_template(self, db, service, owner, space, monday_template):
        service.remove_template(owner, space.id, monday_template.id)

        assert db.get(AvailabilityTemplate, monday_template.id) is None

    def test_remove_missing_template(self, service, owner, space):
        with pytest.raises(NotFoundException) as exc_info:
            service.remove_template(owner, space.id, "missing")

        assert exc_info.value.code == "TEMPLATE_NOT_FOUND"


class TestOverrideManagement:
    def test_block_whole_day(self, service, owner, space, monday_template, now):
        override = service.block_date(owner, space.id, MONDAY, reason="Holiday")

        assert override.is_whole_day
        assert service.get_slots_for_date(space.id, MONDAY, now=now) == []

    def test_block_partial_window(self, service, owner, space, monday_template, now):
        service.block_date(owner, space.id, MONDAY, start_time=time(12), end_time=time(14))

        slots = service.get_slots_for_date(space.id, MONDAY, now=now)

        assert [s.available for s in slots] == [True, True, True, True, False, False]

    def test_half_specified_window_rejected(self, service, owner, space):
        with pytest.raises(ValidationException) as exc_info:
            service.block_date(owner, space.id, MONDAY, start_time=time(12))

        assert exc_info.value.code == "INVALID_OVERRIDE"

    def test_remove_override(self, service, owner, space, monday_template, now):
        override = service.block_date(owner, space.id, MONDAY)

        service.remove_override(owner, space.id, override.id)

        assert len(service.get_slots_for_date(space.id, MONDAY, now=now)) == 6

    def test_remove_missing_override(self, service, owner, space):
        with pytest.raises(NotFoundException) as exc_info:
            service.remove_override(owner, space.id, "missing")

        assert exc_info.value.code == "OVERRIDE_NOT_FOUND"
