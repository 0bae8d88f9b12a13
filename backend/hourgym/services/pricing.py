"""Pricing calculations for bookings. All amounts are integer minor units (cents)."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from ..core.booking_rules import DEFAULT_BOOKING_RULES, BookingRules
from ..core.constants import MIN_HOURLY_RATE_CENTS
from ..core.exceptions import ValidationException

_SECONDS_PER_HOUR = Decimal(3600)


@dataclass(frozen=True)
class PricingResult:
    hours: float
    subtotal: int
    platform_fee: int
    total: int
    gym_payout: int

    def to_metadata(self) -> dict[str, str]:
        """String-valued form used in payment gateway metadata."""
        return {key: str(value) for key, value in asdict(self).items()}


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_price(
    hourly_rate: int,
    start: datetime,
    end: datetime,
    rules: BookingRules = DEFAULT_BOOKING_RULES,
) -> PricingResult:
    """
    Price an interval at an hourly rate.

    Fractional hours are allowed. The payout is derived by subtraction, so
    ``subtotal == platform_fee + gym_payout`` always holds exactly. Callers
    must pass ``end > start``.
    """
    seconds = Decimal(str((end - start).total_seconds()))
    subtotal = _round_half_up(Decimal(hourly_rate) * seconds / _SECONDS_PER_HOUR)
    platform_fee = _round_half_up(Decimal(subtotal) * Decimal(rules.platform_fee_percent) / 100)
    return PricingResult(
        hours=float(seconds / _SECONDS_PER_HOUR),
        subtotal=subtotal,
        platform_fee=platform_fee,
        total=subtotal,
        gym_payout=subtotal - platform_fee,
    )


def format_cents(cents: int, currency_symbol: str = "$") -> str:
    """Format minor units for display, e.g. 5000 -> '$50.00'."""
    sign = "-" if cents < 0 else ""
    dollars, remainder = divmod(abs(int(cents)), 100)
    return f"{sign}{currency_symbol}{dollars:,}.{remainder:02d}"


def ensure_min_hourly_rate(hourly_rate: int, minimum: int = MIN_HOURLY_RATE_CENTS) -> int:
    """Reject a space price below the platform floor. ``minimum`` never drops under the schema floor."""
    floor = max(minimum, MIN_HOURLY_RATE_CENTS)
    if hourly_rate < floor:
        raise ValidationException(
            f"Hourly rate must be at least {format_cents(floor)}",
            code="HOURLY_RATE_TOO_LOW",
            details={"min_hourly_rate": floor, "hourly_rate": hourly_rate},
        )
    return hourly_rate
