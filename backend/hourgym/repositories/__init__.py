# backend/hourgym/repositories/__init__.py
"""
Repository layer for HourGym.

Repositories own all SQLAlchemy queries. Services use them through
RepositoryFactory and own transaction boundaries.
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .event_outbox_repository import EventOutboxRepository
from .factory import RepositoryFactory
from .notification_delivery_repository import NotificationDeliveryRepository
from .space_repository import SpaceRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "BookingRepository",
    "EventOutboxRepository",
    "NotificationDeliveryRepository",
    "RepositoryFactory",
    "SpaceRepository",
]
