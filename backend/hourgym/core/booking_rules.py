"""
Booking business rules.

The buffer, duration bounds, platform fee and cancellation cutoffs are a
business contract. They travel as an explicit ``BookingRules`` value so every
core calculation receives the policy it runs under.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict

from . import constants
from .enums import CancellationPolicy


def _default_cutoffs() -> Dict[CancellationPolicy, int]:
    return {
        CancellationPolicy(policy): hours
        for policy, hours in constants.CANCELLATION_CUTOFF_HOURS.items()
    }


@dataclass(frozen=True)
class BookingRules:
    buffer_minutes: int = constants.BUFFER_MINUTES
    min_booking_hours: int = constants.MIN_BOOKING_HOURS
    max_booking_hours: int = constants.MAX_BOOKING_HOURS
    platform_fee_percent: int = constants.PLATFORM_FEE_PERCENT
    cancellation_cutoff_hours: Dict[CancellationPolicy, int] = field(
        default_factory=_default_cutoffs
    )

    def __post_init__(self) -> None:
        if self.buffer_minutes < 0:
            raise ValueError("buffer_minutes must be non-negative")
        if self.min_booking_hours <= 0 or self.max_booking_hours < self.min_booking_hours:
            raise ValueError("booking duration bounds are inconsistent")
        if not 0 <= self.platform_fee_percent <= 100:
            raise ValueError("platform_fee_percent must be between 0 and 100")
        missing = set(CancellationPolicy) - set(self.cancellation_cutoff_hours)
        if missing:
            raise ValueError(f"missing cancellation cutoffs for {sorted(p.value for p in missing)}")

    @classmethod
    def default(cls) -> "BookingRules":
        return cls()

    @property
    def buffer(self) -> timedelta:
        return timedelta(minutes=self.buffer_minutes)

    @property
    def min_duration(self) -> timedelta:
        return timedelta(hours=self.min_booking_hours)

    @property
    def max_duration(self) -> timedelta:
        return timedelta(hours=self.max_booking_hours)

    def cutoff_for(self, policy: CancellationPolicy | str) -> timedelta:
        return timedelta(hours=self.cancellation_cutoff_hours[CancellationPolicy(policy)])


DEFAULT_BOOKING_RULES = BookingRules.default()
