# backend/tests/unit/services/test_pricing.py
"""
Unit tests for booking price calculation.

All amounts are integer cents. The platform fee and gym payout must always
add back up to the subtotal.
"""

from datetime import datetime, timedelta, timezone

import pytest

from hourgym.core.booking_rules import BookingRules
from hourgym.core.exceptions import ValidationException
from hourgym.services.pricing import calculate_price, ensure_min_hourly_rate, format_cents

START = datetime(2030, 6, 17, 15, 0, tzinfo=timezone.utc)


class TestCalculatePrice:
    def test_one_hour_at_fifty_dollars(self):
        result = calculate_price(5000, START, START + timedelta(hours=1))

        assert result.hours == 1
        assert result.subtotal == 5000
        assert result.platform_fee == 750
        assert result.gym_payout == 4250
        assert result.total == 5000

    def test_two_hours_at_fifty_dollars(self):
        result = calculate_price(5000, START, START + timedelta(hours=2))

        assert result.subtotal == 10000
        assert result.platform_fee == 1500
        assert result.gym_payout == 8500
        assert result.total == 10000

    def test_fractional_hours(self):
        """90 minutes is billed as 1.5 hours."""
        result = calculate_price(5000, START, START + timedelta(minutes=90))

        assert result.hours == 1.5
        assert result.subtotal == 7500
        assert result.platform_fee == 1125
        assert result.gym_payout == 6375

    def test_subtotal_rounds_half_up(self):
        result = calculate_price(1999, START, START + timedelta(minutes=30))

        assert result.subtotal == 1000  # 999.5 rounds up

    def test_fee_rounds_half_up_and_payout_absorbs_remainder(self):
        result = calculate_price(1510, START, START + timedelta(hours=1))

        assert result.platform_fee == 227  # 226.5 rounds up
        assert result.gym_payout == 1283
        assert result.platform_fee + result.gym_payout == result.subtotal

    @pytest.mark.parametrize("rate", [1500, 1999, 2345, 4999, 12345])
    @pytest.mark.parametrize("minutes", [60, 75, 90, 135, 240])
    def test_fee_plus_payout_equals_subtotal(self, rate, minutes):
        result = calculate_price(rate, START, START + timedelta(minutes=minutes))

        assert result.platform_fee + result.gym_payout == result.subtotal
        assert result.total == result.subtotal

    def test_uses_rules_fee_percent(self):
        rules = BookingRules(platform_fee_percent=20)

        result = calculate_price(5000, START, START + timedelta(hours=2), rules)

        assert result.platform_fee == 2000
        assert result.gym_payout == 8000

    def test_to_metadata_is_string_valued(self):
        metadata = calculate_price(5000, START, START + timedelta(hours=1)).to_metadata()

        assert metadata["subtotal"] == "5000"
        assert all(isinstance(value, str) for value in metadata.values())


class TestFormatCents:
    @pytest.mark.parametrize(
        "cents,expected",
        [(5000, "$50.00"), (0, "$0.00"), (7, "$0.07"), (123456, "$1,234.56"), (-750, "-$7.50")],
    )
    def test_format(self, cents, expected):
        assert format_cents(cents) == expected


class TestMinimumHourlyRate:
    def test_accepts_minimum(self):
        assert ensure_min_hourly_rate(1500) == 1500

    def test_rejects_below_minimum(self):
        with pytest.raises(ValidationException) as exc_info:
            ensure_min_hourly_rate(1499)

        assert exc_info.value.code == "HOURLY_RATE_TOO_LOW"
        assert exc_info.value.details["min_hourly_rate"] == 1500

    def test_configured_minimum_raises_the_floor(self):
        with pytest.raises(ValidationException) as exc_info:
            ensure_min_hourly_rate(2000, minimum=2500)

        assert exc_info.value.details["min_hourly_rate"] == 2500

    def test_configured_minimum_never_below_schema_floor(self):
        with pytest.raises(ValidationException):
            ensure_min_hourly_rate(1000, minimum=500)
