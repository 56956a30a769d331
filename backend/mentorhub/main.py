# backend/mentorhub/main.py
"""
FastAPI application for the MentorHub availability service.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_PREFIX, API_TITLE, API_VERSION, BRAND_NAME
from .database import init_db
from .errors import register_error_handlers
from .routes import availability, prometheus

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    init_db()

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)

    api_v1 = APIRouter(prefix=API_PREFIX)
    api_v1.include_router(
        availability.router,
        prefix="/mentors/{mentor_id}/availability",
        tags=["availability"],
    )
    app.include_router(api_v1)
    app.include_router(prometheus.router)
    return app


app = create_app()
