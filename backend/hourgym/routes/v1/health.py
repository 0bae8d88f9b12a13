# backend/hourgym/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer checks.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter

from ...core.config import settings
from ...core.constants import BRAND_NAME
from ...database import get_db_pool_status

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict:
    return {
        "status": "healthy",
        "service": f"{BRAND_NAME.lower()}-api",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "database_pool": get_db_pool_status(),
    }
