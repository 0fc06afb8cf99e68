# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""FastAPI application entry point for the booking calendar service."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from booking_calendar import __version__
from booking_calendar.api import (
    accounting,
    auth,
    calendars,
    comments,
    csv_upload,
    health,
    lodgify,
    properties,
    vrbo,
)
from booking_calendar.config import get_settings
from booking_calendar.database import dispose_engine, init_db
from booking_calendar.middleware.auth import AuthenticationMiddleware
from booking_calendar.middleware.error_handler import ErrorHandlerMiddleware
from booking_calendar.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup/shutdown events.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    # Startup
    settings = get_settings()
    setup_logging()
    app.state.settings = settings

    if settings.comments_backend_enabled:
        await init_db()
    if settings.standalone_mode:
        logger.warning("Standalone mode: authentication is disabled")
    logger.info("Booking calendar %s started", __version__)

    yield

    # Shutdown
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title="Booking Calendar",
        description="Monthly apartment booking calendars from Lodgify, VRBO and CSV",
        version=__version__,
        docs_url="/docs" if settings.standalone_mode else None,
        redoc_url="/redoc" if settings.standalone_mode else None,
        lifespan=lifespan,
    )

    # Starlette wraps in reverse order: the last added middleware is outermost
    app.add_middleware(AuthenticationMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(properties.router)
    app.include_router(lodgify.router)
    app.include_router(vrbo.router)
    app.include_router(calendars.router)
    app.include_router(csv_upload.router)
    app.include_router(comments.router)
    app.include_router(accounting.router)

    return app


# Application instance
app = create_app()
