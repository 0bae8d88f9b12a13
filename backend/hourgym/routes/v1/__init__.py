# backend/hourgym/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings, gyms, health, spaces, webhooks_stripe

__all__ = [
    "bookings",
    "gyms",
    "health",
    "spaces",
    "webhooks_stripe",
]
