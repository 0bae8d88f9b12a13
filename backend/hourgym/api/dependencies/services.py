# backend/hourgym/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.gym_service import GymService
from ...services.stripe_service import StripeService
from .database import get_db


def get_stripe_service(db: Session = Depends(get_db)) -> StripeService:
    return StripeService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db, rules=settings.booking_rules())


def get_gym_service(db: Session = Depends(get_db)) -> GymService:
    return GymService(db, min_hourly_rate=settings.min_hourly_rate_cents)


def get_booking_service(
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service),
) -> BookingService:
    """BookingService sharing the request's session with its gateway."""
    return BookingService(db, rules=settings.booking_rules(), stripe_service=stripe_service)
