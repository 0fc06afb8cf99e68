# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Month grid construction and reservation placement."""

import calendar
import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from booking_calendar.models.reservation import (
    ApartmentCalendar,
    CalendarDay,
    CalendarWeek,
    Reservation,
    ReservationTouch,
)

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7

# date.weekday(): Monday=0 .. Sunday=6
_SUNDAY = 6
_SATURDAY = 5


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Get first and last day of a month.

    Args:
        year: Calendar year.
        month: Month, 1-based.

    Returns:
        Tuple of (first day, last day).
    """
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def get_calendar_dates(year: int, month: int) -> list[date]:
    """Get every date shown in the month grid.

    The range starts on the Sunday on or before the first of the month
    and ends on the Saturday on or after the last day, so it always
    covers whole weeks.

    Args:
        year: Calendar year.
        month: Month, 1-based.

    Returns:
        Chronological list of dates, length a multiple of seven.
    """
    first, last = month_bounds(year, month)
    start = first - timedelta(days=(first.weekday() - _SUNDAY) % DAYS_PER_WEEK)
    end = last + timedelta(days=(_SATURDAY - last.weekday()) % DAYS_PER_WEEK)
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def group_dates_by_week(dates: Sequence[date]) -> list[list[date]]:
    """Split a chronological date list into consecutive 7-day chunks."""
    return [
        list(dates[i : i + DAYS_PER_WEEK]) for i in range(0, len(dates), DAYS_PER_WEEK)
    ]


def create_reservation_lookup(
    reservations: Iterable[Reservation],
) -> dict[date, list[ReservationTouch]]:
    """Index reservation touches by calendar date.

    Every night of the stay (arrival inclusive, departure exclusive) gets
    a touch, flagged as checkin on the arrival date. The departure date
    gets its own checkout touch. Reservations whose departure is not after
    arrival produce nothing.

    Args:
        reservations: Reservations to place.

    Returns:
        Mapping of date to touches in input order.
    """
    lookup: dict[date, list[ReservationTouch]] = defaultdict(list)

    for reservation in reservations:
        if reservation.is_degenerate:
            logger.warning(
                "Skipping reservation %s with departure %s not after arrival %s",
                reservation.id,
                reservation.departure,
                reservation.arrival,
            )
            continue

        current = reservation.arrival
        while current < reservation.departure:
            lookup[current].append(
                ReservationTouch(
                    reservation=reservation,
                    is_checkin=current == reservation.arrival,
                )
            )
            current += timedelta(days=1)

        lookup[reservation.departure].append(
            ReservationTouch(reservation=reservation, is_checkout=True)
        )

    return lookup


def overlaps_period(reservation: Reservation, start: date, end: date) -> bool:
    """Check whether a reservation touches the closed period [start, end]."""
    return reservation.arrival <= end and reservation.departure >= start


def count_month_bookings(
    reservations: Iterable[Reservation], year: int, month: int
) -> int:
    """Count distinct reservations overlapping a month.

    The raw interval arithmetic is used, so a degenerate reservation can
    be counted even though it places no touches.
    """
    first, last = month_bounds(year, month)
    seen = {r.id for r in reservations if overlaps_period(r, first, last)}
    return len(seen)


def build_calendar(
    apartment_name: str,
    reservations: Sequence[Reservation],
    year: int,
    month: int,
) -> ApartmentCalendar:
    """Build the month grid for one apartment.

    Args:
        apartment_name: Apartment the calendar is for.
        reservations: Reservations for that apartment; need not be
            narrowed to the month.
        year: Calendar year.
        month: Month, 1-based.

    Returns:
        ApartmentCalendar with complete Sunday-Saturday weeks.
    """
    lookup = create_reservation_lookup(reservations)

    weeks = tuple(
        CalendarWeek(
            days=tuple(
                CalendarDay(
                    date=day,
                    is_current_month=(day.year == year and day.month == month),
                    reservations=tuple(lookup.get(day, ())),
                )
                for day in week
            )
        )
        for week in group_dates_by_week(get_calendar_dates(year, month))
    )

    return ApartmentCalendar(
        apartment_name=apartment_name,
        year=year,
        month=month,
        weeks=weeks,
        total_bookings=count_month_bookings(reservations, year, month),
    )


def filter_reservations_for_month(
    reservations: Iterable[Reservation], year: int, month: int
) -> list[Reservation]:
    """Keep reservations whose stay overlaps the given month."""
    first, last = month_bounds(year, month)
    return [r for r in reservations if overlaps_period(r, first, last)]


def group_by_apartment(
    reservations: Iterable[Reservation],
) -> dict[str, list[Reservation]]:
    """Group reservations by house name, preserving first-seen order."""
    groups: dict[str, list[Reservation]] = {}
    for reservation in reservations:
        groups.setdefault(reservation.house_name, []).append(reservation)
    return groups


def build_calendars(
    reservations: Iterable[Reservation], year: int, month: int
) -> list[ApartmentCalendar]:
    """Build one calendar per apartment, sorted by apartment name."""
    groups = group_by_apartment(reservations)
    return [
        build_calendar(name, groups[name], year, month) for name in sorted(groups)
    ]
