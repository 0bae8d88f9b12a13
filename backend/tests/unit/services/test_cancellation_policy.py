# backend/tests/unit/services/test_cancellation_policy.py
"""Unit tests for the cancellation refund policy."""

from datetime import datetime, timedelta, timezone

import pytest

from hourgym.core.booking_rules import BookingRules
from hourgym.core.enums import CancellationPolicy, CancelledBy
from hourgym.services.cancellation_policy import (
    can_cancel_with_refund,
    decide_refund,
    hours_until_start,
)

NOW = datetime(2030, 6, 17, 14, 0, tzinfo=timezone.utc)


class TestCanCancelWithRefund:
    @pytest.mark.parametrize(
        "policy,hours",
        [
            (CancellationPolicy.FLEXIBLE, 24),
            (CancellationPolicy.MODERATE, 48),
            (CancellationPolicy.STRICT, 168),
        ],
    )
    def test_cutoff_boundary_is_inclusive(self, policy, hours):
        start = NOW + timedelta(hours=hours)

        assert can_cancel_with_refund(start, NOW, policy) is True
        assert can_cancel_with_refund(start - timedelta(seconds=1), NOW, policy) is False

    def test_moderate_48_hours_before_start(self):
        start = NOW + timedelta(hours=48)

        assert can_cancel_with_refund(start, start - timedelta(hours=48), CancellationPolicy.MODERATE) is True
        assert can_cancel_with_refund(start, start - timedelta(hours=47, minutes=59), CancellationPolicy.MODERATE) is False

    def test_accepts_policy_string(self):
        start = NOW + timedelta(hours=30)

        assert can_cancel_with_refund(start, NOW, "flexible") is True
        assert can_cancel_with_refund(start, NOW, "moderate") is False

    def test_custom_cutoffs_from_rules(self):
        rules = BookingRules(
            cancellation_cutoff_hours={
                CancellationPolicy.FLEXIBLE: 2,
                CancellationPolicy.MODERATE: 12,
                CancellationPolicy.STRICT: 72,
            }
        )
        start = NOW + timedelta(hours=3)

        assert can_cancel_with_refund(start, NOW, CancellationPolicy.FLEXIBLE, rules) is True
        assert can_cancel_with_refund(start, NOW, CancellationPolicy.MODERATE, rules) is False

    def test_hours_until_start(self):
        assert hours_until_start(NOW + timedelta(minutes=90), NOW) == 1.5


class TestDecideRefund:
    def test_owner_cancellation_always_refunds_in_full(self):
        decision = decide_refund(
            CancelledBy.GYM_OWNER,
            NOW + timedelta(hours=1),
            NOW,
            CancellationPolicy.STRICT,
            5000,
        )

        assert decision.eligible is True
        assert decision.amount == 5000
        assert decision.reason == "owner_cancelled"

    def test_renter_within_policy(self):
        decision = decide_refund(
            CancelledBy.RENTER,
            NOW + timedelta(hours=72),
            NOW,
            CancellationPolicy.MODERATE,
            7500,
        )

        assert decision.amount == 7500
        assert decision.reason == "within_policy"

    def test_renter_past_cutoff_gets_nothing(self):
        decision = decide_refund(
            CancelledBy.RENTER,
            NOW + timedelta(hours=47),
            NOW,
            CancellationPolicy.MODERATE,
            7500,
        )

        assert decision.eligible is False
        assert decision.amount == 0
        assert decision.reason == "past_cutoff"
