# backend/hourgym/main.py
"""
HourGym API application.

Mounts the v1 routers under /api/v1 and installs the problem-JSON error
envelope. Run with ``uvicorn hourgym.main:app``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from .core.config import settings
from .core.constants import ALLOWED_ORIGINS, BRAND_NAME
from .errors import register_error_handlers
from .routes.v1 import (
    bookings as bookings_v1,
    gyms as gyms_v1,
    health as health_v1,
    spaces as spaces_v1,
    webhooks_stripe as webhooks_stripe_v1,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if not settings.stripe_configured:
        logger.warning("Stripe is not configured; checkout and refunds will fail")
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=f"{BRAND_NAME} API",
    description="Hourly gym space rentals",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)

# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s allow_credentials=%s", ALLOWED_ORIGINS, True)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(health_v1.router)
api_v1.include_router(gyms_v1.router, prefix="/gyms")
api_v1.include_router(spaces_v1.router, prefix="/spaces")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(webhooks_stripe_v1.router, prefix="/webhooks")

app.include_router(api_v1)
