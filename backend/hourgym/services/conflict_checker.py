# backend/hourgym/services/conflict_checker.py
"""
Booking conflict validation for HourGym.

Validates a requested interval against:
- the current time (no past bookings)
- the duration bounds of the booking rules
- existing confirmed bookings, each widened by the buffer on both sides

The overlap helpers here are shared with slot generation, so a slot shown as
available is exactly one the validator accepts. This check runs on a read taken
at request time and is advisory; the store guard in BookingService is what
rejects a booking that lost a race.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple

from ..core.booking_rules import DEFAULT_BOOKING_RULES, BookingRules
from ..core.enums import BookingStatus
from ..core.exceptions import BookingValidationException
from ..schemas.booking import BookingEntity

logger = logging.getLogger(__name__)


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Strict half-open overlap. Intervals that only touch do not overlap."""
    return a_start < b_end and b_start < a_end


def buffered_interval(
    start: datetime, end: datetime, buffer: timedelta
) -> Tuple[datetime, datetime]:
    return start - buffer, end + buffer


def find_conflicting_booking(
    start: datetime,
    end: datetime,
    existing_bookings: Iterable[BookingEntity],
    rules: BookingRules = DEFAULT_BOOKING_RULES,
) -> Optional[BookingEntity]:
    """Return the first confirmed booking whose buffered interval intersects [start, end)."""
    for booking in existing_bookings:
        if booking.status != BookingStatus.CONFIRMED:
            continue
        blocked_start, blocked_end = buffered_interval(
            booking.start_at, booking.end_at, rules.buffer
        )
        if intervals_overlap(start, end, blocked_start, blocked_end):
            return booking
    return None


def _require_aware(value: datetime, name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware")


def validate_booking_request(
    start: datetime,
    end: datetime,
    existing_bookings: Iterable[BookingEntity],
    now: Optional[datetime] = None,
    rules: BookingRules = DEFAULT_BOOKING_RULES,
) -> None:
    """
    Validate a proposed booking interval.

    Checks run in order and stop at the first failure: past start, duration
    bounds (inclusive), then buffered overlap with confirmed bookings.

    Raises:
        ValueError: If the interval itself is malformed (naive or end <= start)
        BookingValidationException: If the request breaks a booking rule
    """
    _require_aware(start, "start")
    _require_aware(end, "end")
    if end <= start:
        raise ValueError("end must be after start")

    now = now or datetime.now(timezone.utc)

    if start < now:
        raise BookingValidationException.past_booking()

    duration = end - start
    if duration < rules.min_duration:
        raise BookingValidationException.too_short(rules.min_booking_hours)
    if duration > rules.max_duration:
        raise BookingValidationException.too_long(rules.max_booking_hours)

    conflict = find_conflicting_booking(start, end, existing_bookings, rules)
    if conflict is not None:
        logger.warning(
            "Booking request %s-%s conflicts with booking %s", start, end, conflict.id
        )
        raise BookingValidationException.conflict(conflict.id)
