# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""VRBO iCal sync endpoint."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from booking_calendar.api.calendars import serialize_reservation
from booking_calendar.api.dependencies import get_vrbo_service
from booking_calendar.services.vrbo_service import (
    VrboLinkNotFoundError,
    VrboSyncError,
    VrboSyncService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vrbo-ical-sync", tags=["VRBO"])


@router.api_route("", methods=["GET", "POST"])
async def sync_vrbo(
    vrbo: Annotated[VrboSyncService, Depends(get_vrbo_service)],
    apartment: Annotated[str | None, Query()] = None,
    refresh: Annotated[bool, Query()] = False,
) -> dict[str, Any]:
    """Fetch VRBO feeds, optionally for one apartment.

    Raises:
        HTTPException: 404 if no feed matches the apartment, 500 if the
            link table is unusable.
    """
    try:
        result = await vrbo.sync(apartment=apartment, force_refresh=refresh)
    except VrboLinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except VrboSyncError as e:
        logger.error("VRBO sync failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e

    return {
        "success": True,
        "reservations": [serialize_reservation(r) for r in result.reservations],
        "totalReservations": len(result.reservations),
        "processedApartments": result.processed_apartments,
        "errors": result.errors,
        "lastSync": result.last_sync.isoformat(),
    }
