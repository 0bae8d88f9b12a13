# backend/hourgym/repositories/factory.py
"""
Repository Factory for HourGym

Central place for constructing repositories so services do not import
concrete classes directly.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .booking_repository import BookingRepository
    from .event_outbox_repository import EventOutboxRepository
    from .notification_delivery_repository import NotificationDeliveryRepository
    from .space_repository import SpaceRepository


class RepositoryFactory:
    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_space_repository(db: Session) -> "SpaceRepository":
        from .space_repository import SpaceRepository

        return SpaceRepository(db)

    @staticmethod
    def create_event_outbox_repository(db: Session) -> "EventOutboxRepository":
        from .event_outbox_repository import EventOutboxRepository

        return EventOutboxRepository(db)

    @staticmethod
    def create_notification_delivery_repository(db: Session) -> "NotificationDeliveryRepository":
        from .notification_delivery_repository import NotificationDeliveryRepository

        return NotificationDeliveryRepository(db)
