# backend/tutorhub/main.py
"""
FastAPI application for the tutorhub scheduling backend.

Routers:
    /api/v1/teachers/{teacher_id}/availability... - availability and rules
    /api/v1/bookings... - booking creation, lifecycle and history
    /health, /metrics - operations
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator

from fastapi import APIRouter, FastAPI

from . import __version__
from .core.config import settings
from .core.constants import BRAND_NAME
from .database import init_db
from .errors import register_error_handlers
from .routes import availability, bookings, health, metrics

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(f"Starting {BRAND_NAME} scheduling API ({settings.environment})")
    if settings.environment in ("development", "test") and settings.is_sqlite:
        init_db()
    yield
    logger.info(f"Stopping {BRAND_NAME} scheduling API")


def create_app() -> FastAPI:
    application = FastAPI(
        title=f"{BRAND_NAME} Scheduling API",
        description="Teacher availability resolution and booking scheduling",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(application)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(availability.router, prefix="/teachers")
    api_v1.include_router(bookings.router, prefix="/bookings")

    application.include_router(api_v1)
    application.include_router(health.router)
    application.include_router(metrics.router)
    return application


app = create_app()
