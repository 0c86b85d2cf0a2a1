"""
Main Application - Main Layer

FastAPI application factory for the emigrant forecasting service. The
container is built from settings, the per-architecture forecasting router
and the health router are mounted, and background training is stopped when
the application shuts down.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.main.config import AppSettings, get_settings
from src.main.container import app_lifespan, init_container
from src.presentation.controllers import forecasting_router, system_router
from src.shared import configure_logging, get_logger, update_logging_from_settings

configure_logging()
settings = get_settings()
update_logging_from_settings(settings)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Record the start time and hand resource management to the container."""
    app.state.started_at = datetime.now(timezone.utc)

    async with app_lifespan() as container:
        app.state.container = container
        logger.info(
            "app.startup",
            version=app.version,
            storage_backend=container.config.storage.backend(),
            lookback=container.config.forecast.lookback(),
        )
        yield

    uptime = (datetime.now(timezone.utc) - app.state.started_at).total_seconds()
    logger.info("app.shutdown", uptime_seconds=round(uptime, 3))


def create_app(app_settings: Optional[AppSettings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Settings to wire the container with; loaded from the
            environment when omitted

    Returns:
        FastAPI: The configured application
    """
    app_settings = app_settings or get_settings()
    init_container(app_settings)

    app = FastAPI(
        title=app_settings.app.title,
        description=app_settings.app.description,
        version=app_settings.app.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(system_router)
    app.include_router(forecasting_router)

    return app


app = create_app(settings)
