# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Lodgify proxy endpoints."""

import logging
from datetime import date
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status

from booking_calendar.api.dependencies import get_lodgify_service
from booking_calendar.services.lodgify_service import (
    LodgifyAuthError,
    LodgifyService,
    LodgifyServiceError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lodgify", tags=["Lodgify"])


def lodgify_http_error(error: Exception) -> HTTPException:
    """Translate a Lodgify failure into an HTTPException."""
    if isinstance(error, LodgifyAuthError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Lodgify authentication failed: {error}",
        )
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Lodgify request failed: {error}",
    )


@router.get("/reservations")
async def get_reservations(
    lodgify: Annotated[LodgifyService, Depends(get_lodgify_service)],
    start_date: Annotated[date, Query(alias="startDate")],
    end_date: Annotated[date, Query(alias="endDate")],
    include_all: Annotated[bool, Query(alias="includeAll")] = False,
) -> dict[str, Any]:
    """Fetch Lodgify bookings for a window with per-field breakdowns.

    Raises:
        HTTPException: 400 for a reversed window, 502 if Lodgify fails.
    """
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="endDate must not be before startDate",
        )
    try:
        result = await lodgify.get_reservations(start_date, end_date, include_all)
    except (LodgifyServiceError, httpx.HTTPError) as e:
        logger.error("Lodgify reservations request failed: %s", e)
        raise lodgify_http_error(e) from e

    return {
        "items": result.items,
        "count": result.count,
        "totalPages": result.total_pages,
        "filterApplied": result.filter_applied,
        "propertyStats": result.property_stats,
        "statusStats": result.status_stats,
        "sourceStats": result.source_stats,
        "dateRange": {"start": start_date.isoformat(), "end": end_date.isoformat()},
    }


@router.get("/test")
async def test_connection(
    lodgify: Annotated[LodgifyService, Depends(get_lodgify_service)],
) -> dict[str, Any]:
    """Check the configured API key against Lodgify."""
    return await lodgify.test_connection()
