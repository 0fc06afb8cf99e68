# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Normalized reservation and calendar grid value objects.

Reservations from every source (Lodgify API, VRBO iCal feeds, CSV exports)
are converted into :class:`Reservation` before they reach the calendar
builder. The grid types are produced fresh for every request.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

KNOWN_SOURCES = ("Airbnb", "VRBO", "Website", "Booking.com", "Expedia")
DEFAULT_SOURCE = "Website"


def to_date(value: date | datetime) -> date:
    """Drop any time-of-day component from a date or datetime.

    Args:
        value: Date or datetime (naive or aware).

    Returns:
        Calendar date of the value as written.
    """
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class Reservation:
    """A booking for one apartment, independent of where it came from."""

    id: str
    arrival: date
    departure: date
    house_name: str
    source: str = DEFAULT_SOURCE
    guest_name: str = ""
    email: str = ""
    phone: str = ""
    country: str = ""
    people: int = 0
    house_id: str = ""
    total_amount: Decimal = Decimal("0")
    currency: str = "EUR"
    status: str = "Booked"
    source_text: str = ""
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        """Normalize dates so comparisons are by calendar day."""
        object.__setattr__(self, "arrival", to_date(self.arrival))
        object.__setattr__(self, "departure", to_date(self.departure))

    @property
    def nights(self) -> int:
        """Number of nights between arrival and departure."""
        return (self.departure - self.arrival).days

    @property
    def display_source(self) -> str:
        """Channel name used for rendering; unknown channels show as Website."""
        return self.source if self.source in KNOWN_SOURCES else DEFAULT_SOURCE

    @property
    def is_degenerate(self) -> bool:
        """Whether departure is not strictly after arrival."""
        return self.departure <= self.arrival


@dataclass(frozen=True)
class ReservationTouch:
    """A reservation's presence on a single calendar day."""

    reservation: Reservation
    is_checkin: bool = False
    is_checkout: bool = False

    @property
    def is_stay(self) -> bool:
        """Mid-stay day (neither checkin nor checkout)."""
        return not self.is_checkin and not self.is_checkout


@dataclass(frozen=True)
class CalendarDay:
    """One cell of the month grid."""

    date: date
    is_current_month: bool
    reservations: tuple[ReservationTouch, ...] = ()


@dataclass(frozen=True)
class CalendarWeek:
    """Seven consecutive days, Sunday through Saturday."""

    days: tuple[CalendarDay, ...]


@dataclass(frozen=True)
class ApartmentCalendar:
    """Month grid for one apartment."""

    apartment_name: str
    year: int
    month: int
    weeks: tuple[CalendarWeek, ...] = field(default_factory=tuple)
    total_bookings: int = 0

    @property
    def days(self) -> list[CalendarDay]:
        """All grid days in chronological order."""
        return [day for week in self.weeks for day in week.days]

    def day(self, value: date) -> CalendarDay | None:
        """Find the grid cell for a date, if it is visible."""
        for cell in self.days:
            if cell.date == value:
                return cell
        return None
