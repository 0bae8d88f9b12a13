"""
Hourly slot generation for a space on a calendar date.

Templates and override windows are wall-clock times in the gym's timezone.
They are converted to absolute instants for that date before any comparison
with bookings, which are stored in UTC.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
import logging
from typing import Iterable, List, Optional, Sequence, Union

import pytz

from ..core.booking_rules import DEFAULT_BOOKING_RULES, BookingRules
from ..core.constants import SLOT_LENGTH_MINUTES
from ..core.timezone_utils import day_of_week, get_timezone, local_wall_time_to_utc
from ..schemas.availability import OverrideEntity, TemplateEntity
from ..schemas.booking import BookingEntity
from .conflict_checker import find_conflicting_booking, intervals_overlap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime
    available: bool


def _candidate_windows(
    day: date, template: TemplateEntity, zone: pytz.BaseTzInfo
) -> Iterable[tuple[datetime, datetime]]:
    """
    Whole-hour windows inside the template, stepped in absolute time.

    Template bounds are resolved to UTC once and slots advance by elapsed
    hours from there, so every slot is exactly one hour even on a DST
    transition day. A partial trailing hour is dropped.
    """
    cursor = local_wall_time_to_utc(day, template.start_time, zone)
    end = local_wall_time_to_utc(day, template.end_time, zone)
    step = timedelta(minutes=SLOT_LENGTH_MINUTES)
    while cursor + step <= end:
        yield cursor, cursor + step
        cursor += step


def generate_slots(
    day: date,
    templates: Sequence[TemplateEntity],
    overrides: Sequence[OverrideEntity],
    existing_bookings: Sequence[BookingEntity],
    tz: Union[str, pytz.BaseTzInfo, None],
    now: Optional[datetime] = None,
    rules: BookingRules = DEFAULT_BOOKING_RULES,
    deduplicate: bool = False,
) -> List[TimeSlot]:
    """
    Produce the one-hour candidate slots for ``day``.

    Returns an empty list when a whole-day override exists for the date or no
    template matches its day of week. A slot is unavailable when it overlaps a
    partial override window, overlaps a confirmed booking widened by the
    buffer, or starts before ``now``.

    Overlapping templates can produce repeated slots; they are kept unless
    ``deduplicate`` is set. Output is sorted by (start, end).
    """
    zone = tz if isinstance(tz, pytz.BaseTzInfo) else get_timezone(tz)
    now = now or datetime.now(timezone.utc)

    todays_overrides = [o for o in overrides if o.date == day]
    if any(o.is_whole_day for o in todays_overrides):
        return []

    dow = day_of_week(day)
    matching = [t for t in templates if t.day_of_week == dow]
    if not matching:
        return []

    blocked_windows = [
        (
            local_wall_time_to_utc(day, o.start_time, zone),
            local_wall_time_to_utc(day, o.end_time, zone),
        )
        for o in todays_overrides
        if o.is_partial
    ]

    slots: List[TimeSlot] = []
    for template in matching:
        for slot_start, slot_end in _candidate_windows(day, template, zone):
            available = not (
                slot_start < now
                or any(intervals_overlap(slot_start, slot_end, ws, we) for ws, we in blocked_windows)
                or find_conflicting_booking(slot_start, slot_end, existing_bookings, rules) is not None
            )
            slots.append(TimeSlot(start=slot_start, end=slot_end, available=available))

    slots.sort(key=lambda s: (s.start, s.end))

    if deduplicate:
        unique: List[TimeSlot] = []
        seen: set[tuple[datetime, datetime]] = set()
        for slot in slots:
            key = (slot.start, slot.end)
            if key in seen:
                continue
            seen.add(key)
            unique.append(slot)
        slots = unique

    return slots
