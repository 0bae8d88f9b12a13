"""
Cancellation refund policy.

``can_cancel_with_refund`` answers the renter-initiated question only. A gym
owner cancelling always refunds in full; ``decide_refund`` applies that rule
for callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.booking_rules import DEFAULT_BOOKING_RULES, BookingRules
from ..core.enums import CancellationPolicy, CancelledBy


def hours_until_start(booking_start: datetime, now: datetime) -> float:
    return (booking_start - now).total_seconds() / 3600


def can_cancel_with_refund(
    booking_start: datetime,
    now: datetime,
    policy: CancellationPolicy | str,
    rules: BookingRules = DEFAULT_BOOKING_RULES,
) -> bool:
    """True when the time left before start meets the policy cutoff. The boundary is inclusive."""
    return booking_start - now >= rules.cutoff_for(policy)


@dataclass(frozen=True)
class RefundDecision:
    eligible: bool
    amount: int
    reason: str


def decide_refund(
    cancelled_by: CancelledBy,
    booking_start: datetime,
    now: datetime,
    policy: CancellationPolicy | str,
    total_amount: int,
    rules: BookingRules = DEFAULT_BOOKING_RULES,
) -> RefundDecision:
    if CancelledBy(cancelled_by) is CancelledBy.GYM_OWNER:
        return RefundDecision(eligible=True, amount=total_amount, reason="owner_cancelled")
    if can_cancel_with_refund(booking_start, now, policy, rules):
        return RefundDecision(eligible=True, amount=total_amount, reason="within_policy")
    return RefundDecision(eligible=False, amount=0, reason="past_cutoff")
