# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Domain value objects and SQLAlchemy ORM models."""

from booking_calendar.models.comment import DayComment
from booking_calendar.models.reservation import (
    ApartmentCalendar,
    CalendarDay,
    CalendarWeek,
    Reservation,
    ReservationTouch,
)

__all__ = [
    "ApartmentCalendar",
    "CalendarDay",
    "CalendarWeek",
    "DayComment",
    "Reservation",
    "ReservationTouch",
]
