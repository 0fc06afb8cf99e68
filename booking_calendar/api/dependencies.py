# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Service providers shared by the API routers."""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from booking_calendar.config import get_settings
from booking_calendar.services.lodgify_service import LodgifyService
from booking_calendar.services.property_directory import (
    PropertyDirectory,
    get_property_directory,
)
from booking_calendar.services.reservation_service import ReservationService
from booking_calendar.services.vrbo_service import VrboSyncService, get_ics_cache


def get_directory() -> PropertyDirectory:
    """Configured property directory."""
    return get_property_directory()


def get_lodgify_service() -> LodgifyService:
    """Lodgify client built from settings."""
    return LodgifyService()


def get_vrbo_service() -> VrboSyncService:
    """VRBO feed sync sharing the process-wide feed cache."""
    return VrboSyncService(get_ics_cache())


def get_reservation_service(
    lodgify: Annotated[LodgifyService, Depends(get_lodgify_service)],
    vrbo: Annotated[VrboSyncService, Depends(get_vrbo_service)],
    directory: Annotated[PropertyDirectory, Depends(get_directory)],
) -> ReservationService:
    """Staff calendar aggregation over all sources."""
    return ReservationService(lodgify, vrbo, directory)


def require_comments_enabled() -> None:
    """Reject comment requests when the comments backend is switched off.

    Raises:
        HTTPException: 503 if ``COMMENTS_BACKEND_ENABLED`` is false.
    """
    if not get_settings().comments_backend_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comments backend is disabled",
        )
