# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Month calendar endpoints: JSON grid, single PDF and ZIP bundle."""

import logging
from datetime import date
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from booking_calendar.api.dependencies import get_reservation_service
from booking_calendar.api.lodgify import lodgify_http_error
from booking_calendar.config import get_settings
from booking_calendar.database import get_db
from booking_calendar.models.comment import DayComment
from booking_calendar.models.reservation import (
    ApartmentCalendar,
    CalendarDay,
    Reservation,
    ReservationTouch,
)
from booking_calendar.services.color_service import color_for
from booking_calendar.services.comment_service import CommentService
from booking_calendar.services.export_service import build_zip, render_calendar_pdf
from booking_calendar.services.lodgify_service import LodgifyServiceError
from booking_calendar.services.property_directory import (
    calendar_filename,
    display_name,
    month_name,
)
from booking_calendar.services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calendars", tags=["Calendars"])

Year = Annotated[int, Query(ge=2000, le=2100, description="Calendar year")]
Month = Annotated[int, Query(ge=1, le=12, description="Month, 1-based")]


def serialize_reservation(reservation: Reservation) -> dict[str, Any]:
    """Convert a reservation to a JSON-friendly dict."""
    return {
        "id": reservation.id,
        "guestName": reservation.guest_name,
        "arrival": reservation.arrival.isoformat(),
        "departure": reservation.departure.isoformat(),
        "nights": reservation.nights,
        "houseName": reservation.house_name,
        "source": reservation.source,
        "people": reservation.people,
        "status": reservation.status,
        "totalAmount": str(reservation.total_amount),
        "currency": reservation.currency,
    }


def _serialize_touch(touch: ReservationTouch) -> dict[str, Any]:
    reservation = touch.reservation
    return {
        "reservation": serialize_reservation(reservation),
        "isCheckin": touch.is_checkin,
        "isCheckout": touch.is_checkout,
        "color": color_for(reservation.source, reservation.id),
    }


def _serialize_day(day: CalendarDay) -> dict[str, Any]:
    return {
        "date": day.date.isoformat(),
        "isCurrentMonth": day.is_current_month,
        "reservations": [_serialize_touch(t) for t in day.reservations],
    }


def serialize_calendar(calendar: ApartmentCalendar) -> dict[str, Any]:
    """Convert a month grid to a JSON-friendly dict."""
    return {
        "apartmentName": calendar.apartment_name,
        "displayName": display_name(calendar.apartment_name),
        "year": calendar.year,
        "month": calendar.month,
        "monthName": month_name(calendar.month),
        "totalBookings": calendar.total_bookings,
        "weeks": [
            {"days": [_serialize_day(d) for d in week.days]} for week in calendar.weeks
        ],
    }


async def _month_calendars(
    service: ReservationService,
    year: int,
    month: int,
    apartment: str | None,
    exact: bool = False,
) -> tuple[list[ApartmentCalendar], list[str]]:
    try:
        return await service.month_calendars(year, month, apartment, exact=exact)
    except (LodgifyServiceError, httpx.HTTPError) as e:
        logger.error("Failed to collect reservations for %d-%02d: %s", year, month, e)
        raise lodgify_http_error(e) from e


async def _comments_for(
    db: AsyncSession, calendars: list[ApartmentCalendar]
) -> dict[str, list[DayComment]]:
    """Comments per apartment, or nothing when the comments backend is off."""
    if not get_settings().comments_backend_enabled:
        return {}
    service = CommentService(db)
    return {c.apartment_name: await service.calendar_comments(c) for c in calendars}


@router.get("")
async def get_calendars(
    service: Annotated[ReservationService, Depends(get_reservation_service)],
    year: Year,
    month: Month,
    apartment: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    """Build the staff calendars for a month from every source."""
    calendars, warnings = await _month_calendars(service, year, month, apartment)
    return {
        "year": year,
        "month": month,
        "calendars": [serialize_calendar(c) for c in calendars],
        "total": len(calendars),
        "warnings": warnings,
        "generatedAt": date.today().isoformat(),
    }


@router.get("/pdf")
async def get_calendar_pdf(
    service: Annotated[ReservationService, Depends(get_reservation_service)],
    db: Annotated[AsyncSession, Depends(get_db)],
    year: Year,
    month: Month,
    apartment: Annotated[str, Query(min_length=1)],
) -> Response:
    """Render the apartment named ``apartment`` as a PDF.

    The name must match in full, ignoring case.

    Raises:
        HTTPException: 404 if that apartment has no bookings this month.
    """
    calendars, _ = await _month_calendars(
        service, year, month, apartment, exact=True
    )
    if not calendars:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No calendar found for apartment: {apartment}",
        )
    calendar = calendars[0]
    comments = await _comments_for(db, [calendar])
    pdf = render_calendar_pdf(calendar, comments.get(calendar.apartment_name, ()))
    filename = calendar_filename(calendar.apartment_name, month, year)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/zip")
async def get_calendar_zip(
    service: Annotated[ReservationService, Depends(get_reservation_service)],
    db: Annotated[AsyncSession, Depends(get_db)],
    year: Year,
    month: Month,
) -> Response:
    """Render every apartment's month and bundle the PDFs.

    Raises:
        HTTPException: 404 if no apartment has bookings in the month.
    """
    calendars, _ = await _month_calendars(service, year, month, None)
    if not calendars:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No reservations found for {month_name(month)} {year}",
        )
    comments = await _comments_for(db, calendars)
    filename, archive = build_zip(calendars, year, month, comments)
    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
