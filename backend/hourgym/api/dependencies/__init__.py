# backend/hourgym/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_user, require_gym_owner
from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_gym_service,
    get_stripe_service,
)

__all__ = [
    # Auth
    "get_current_user",
    "require_gym_owner",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_service",
    "get_gym_service",
    "get_stripe_service",
]
