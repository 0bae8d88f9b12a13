"""
Database models for HourGym.

The models are organized by functionality:
- User profiles
- Gyms and their rentable spaces
- Availability templates and overrides
- Bookings
- Notification outbox and delivery records
"""

from .availability import AvailabilityOverride, AvailabilityTemplate
from .booking import NO_OVERLAP_CONSTRAINT, Booking
from .event_outbox import EventOutbox, EventOutboxStatus, NotificationDelivery
from .gym import Gym, Space
from .user import User

__all__ = [
    "AvailabilityOverride",
    "AvailabilityTemplate",
    "Booking",
    "EventOutbox",
    "EventOutboxStatus",
    "Gym",
    "NO_OVERLAP_CONSTRAINT",
    "NotificationDelivery",
    "Space",
    "User",
]
