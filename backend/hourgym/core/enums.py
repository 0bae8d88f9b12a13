# backend/hourgym/core/enums.py
"""Shared enumerations for HourGym."""

from enum import Enum


class UserRole(str, Enum):
    RENTER = "renter"
    GYM_OWNER = "gym_owner"


class SpaceType(str, Enum):
    MATS = "mats"
    TURF = "turf"
    CAGE = "cage"
    STUDIO = "studio"
    OTHER = "other"


class CancellationPolicy(str, Enum):
    """Refund tiers a gym can choose for renter-initiated cancellations."""

    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses.

    Only CONFIRMED and CANCELLED are stored. COMPLETED is derived from the
    clock once a confirmed booking has ended.
    """

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class CancelledBy(str, Enum):
    RENTER = "renter"
    GYM_OWNER = "gym_owner"
