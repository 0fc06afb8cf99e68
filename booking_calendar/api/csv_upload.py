# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""CSV export upload and static CSV endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status

from booking_calendar.api.calendars import Month, Year, serialize_calendar
from booking_calendar.services.calendar_service import (
    build_calendars,
    filter_reservations_for_month,
)
from booking_calendar.services.csv_service import (
    CsvFileNotFoundError,
    CsvImportError,
    InvalidCsvFilenameError,
    load_static_rows,
    parse_csv_reservations,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/csv", tags=["CSV"])


@router.post("/calendars")
async def upload_csv_calendars(
    file: Annotated[UploadFile, File(description="Lodgify CSV export")],
    year: Year,
    month: Month,
) -> dict[str, Any]:
    """Build month calendars from an uploaded CSV export.

    Raises:
        HTTPException: 400 if the file is not a usable CSV export.
    """
    content = await file.read()
    try:
        reservations = parse_csv_reservations(content)
    except CsvImportError as e:
        logger.warning("Rejected CSV upload %s: %s", file.filename, e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    in_month = filter_reservations_for_month(reservations, year, month)
    calendars = build_calendars(in_month, year, month)
    logger.info(
        "Built %d calendars from %s (%d of %d reservations in month)",
        len(calendars),
        file.filename,
        len(in_month),
        len(reservations),
    )
    return {
        "year": year,
        "month": month,
        "calendars": [serialize_calendar(c) for c in calendars],
        "total": len(calendars),
        "parsedReservations": len(reservations),
    }


@router.get("/static")
async def get_static_csv(
    filename: Annotated[str, Query(min_length=1)],
) -> dict[str, Any]:
    """Return the rows of a static CSV file from the data directory.

    Raises:
        HTTPException: 400 for unsafe names, 404 if missing, 500 if unparseable.
    """
    try:
        rows = load_static_rows(filename)
    except InvalidCsvFilenameError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except CsvFileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except CsvImportError as e:
        logger.error("Failed to parse static CSV %s: %s", filename, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e

    return {
        "success": True,
        "filename": filename,
        "reservations": rows,
        "totalReservations": len(rows),
    }
