"""SMS message templates for short notification content."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SMSTemplate:
    event_type: str
    template: str


BOOKING_CONFIRMED = SMSTemplate(
    event_type="booking.confirmed",
    template=(
        "HourGym: Your booking is confirmed! {space_name} at {gym_name} on {date_label}, "
        "{start_time}-{end_time}. Address: {address}"
    ),
)

BOOKING_CANCELLED = SMSTemplate(
    event_type="booking.cancelled",
    template=(
        "HourGym: Your booking for {space_name} on {date_label} at {start_time} has been "
        "cancelled. {refund_message}"
    ),
)

BOOKING_REMINDER = SMSTemplate(
    event_type="booking.reminder",
    template=(
        "HourGym Reminder: Your booking at {gym_name} starts in 1 hour ({start_time}). "
        "Address: {address}. Entry: {entry_instructions}. Contact: {contact_phone}"
    ),
)

TEMPLATES_BY_EVENT = {
    t.event_type: t for t in (BOOKING_CONFIRMED, BOOKING_CANCELLED, BOOKING_REMINDER)
}


def refund_message(payload: dict[str, Any]) -> str:
    if payload.get("refund_amount"):
        return f"A refund of {payload['refund_formatted']} will be processed in 5-10 business days."
    return "No refund was applied based on the cancellation policy."


def render_sms(template: SMSTemplate, **kwargs: Any) -> str:
    try:
        return template.template.format(**kwargs)
    except KeyError as exc:
        missing = exc.args[0] if exc.args else "unknown"
        raise ValueError(f"Missing SMS template variable: {missing}") from exc


__all__ = [
    "SMSTemplate",
    "BOOKING_CONFIRMED",
    "BOOKING_CANCELLED",
    "BOOKING_REMINDER",
    "TEMPLATES_BY_EVENT",
    "refund_message",
    "render_sms",
]
