"""Application-wide constants for the HourGym platform."""

from __future__ import annotations

import os

BRAND_NAME = "HourGym"

# Booking rules (business contract; see core.booking_rules for the runtime value)
BUFFER_MINUTES = 30
MIN_BOOKING_HOURS = 1
MAX_BOOKING_HOURS = 4

# Pricing
PLATFORM_FEE_PERCENT = 15
MIN_HOURLY_RATE_CENTS = 1500  # $15

# Cancellation cutoffs (hours before start)
CANCELLATION_CUTOFF_HOURS = {
    "flexible": 24,
    "moderate": 48,
    "strict": 168,  # 7 days
}

# Time
DEFAULT_TIMEZONE = "America/Denver"
SLOT_LENGTH_MINUTES = 60

# Notifications
REMINDER_MINUTES_BEFORE = 60
REMINDER_WINDOW_MINUTES = 15

# Checkout sessions expire after this many minutes
CHECKOUT_SESSION_MINUTES = 30

# Pagination
SPACES_PER_PAGE = 12
BOOKINGS_PER_PAGE = 10

DEFAULT_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _split_env(name: str) -> list[str]:
    value = os.getenv(name, "")
    return [origin.strip() for origin in value.split(",") if origin.strip()]


ALLOWED_ORIGINS = _split_env("ALLOWED_ORIGINS") or DEFAULT_DEV_ORIGINS

# Error messages
ERROR_PAST_BOOKING = "Cannot book in the past"
ERROR_BOOKING_CONFLICT = "This time slot conflicts with another booking"
ERROR_SLOT_NO_LONGER_AVAILABLE = "This time slot is no longer available"
ERROR_INVALID_TIME_RANGE = "End time must be after start time"
ERROR_PAYMENT_FAILED = "Payment setup failed. Please try again."
ERROR_REFUND_FAILED = "Refund processing failed. Please try again or contact support."
