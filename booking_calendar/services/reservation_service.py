# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Collects reservations from every source and builds month calendars."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any

from booking_calendar.config import get_settings
from booking_calendar.models.reservation import ApartmentCalendar, Reservation
from booking_calendar.services.calendar_service import (
    build_calendars,
    filter_reservations_for_month,
    month_bounds,
)
from booking_calendar.services.csv_service import (
    CsvImportError,
    load_static_reservations,
    merge_reservations,
)
from booking_calendar.services.lodgify_service import LodgifyService, to_reservation
from booking_calendar.services.property_directory import PropertyDirectory
from booking_calendar.services.vrbo_service import VrboSyncError, VrboSyncService

logger = logging.getLogger(__name__)

# Bookings that start or end just outside the month still touch the grid
WINDOW_PADDING_DAYS = 7


@dataclass
class MonthReservations:
    """Reservations for a month plus the warnings collected on the way."""

    year: int
    month: int
    reservations: list[Reservation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def calendars(self) -> list[ApartmentCalendar]:
        """One calendar per apartment, sorted by apartment name."""
        return build_calendars(self.reservations, self.year, self.month)


def fetch_window(year: int, month: int) -> tuple[date, date]:
    """Lodgify query window: the month padded by a week on each side."""
    first, last = month_bounds(year, month)
    padding = timedelta(days=WINDOW_PADDING_DAYS)
    return first - padding, last + padding


def convert_lodgify_items(
    items: Iterable[dict[str, Any]], directory: PropertyDirectory
) -> list[Reservation]:
    """Convert Lodgify payloads, skipping malformed ones."""
    reservations: list[Reservation] = []
    for item in items:
        try:
            reservations.append(to_reservation(item, directory))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Skipping malformed Lodgify booking %s: %s", item.get("id"), e)
    return reservations


class ReservationService:
    """Builds the staff view of a month from Lodgify, VRBO and static CSVs."""

    def __init__(
        self,
        lodgify: LodgifyService,
        vrbo: VrboSyncService | None,
        directory: PropertyDirectory,
        static_files: Sequence[str] | None = None,
        data_dir: Path | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            lodgify: Lodgify client.
            vrbo: VRBO feed sync, or None to skip VRBO.
            directory: Property directory for apartment names.
            static_files: Static CSV filenames. Defaults to settings.
            data_dir: Directory of the static CSV files. Defaults to settings.
        """
        settings = get_settings()
        self._lodgify = lodgify
        self._vrbo = vrbo
        self._directory = directory
        self._static_files = (
            list(static_files)
            if static_files is not None
            else settings.static_csv_filenames
        )
        self._data_dir = data_dir

    async def _vrbo_reservations(self, warnings: list[str]) -> list[Reservation]:
        if self._vrbo is None:
            return []
        try:
            result = await self._vrbo.sync()
        except VrboSyncError as e:
            logger.warning("VRBO sync failed, continuing without it: %s", e)
            warnings.append(f"VRBO sync failed: {e}")
            return []
        warnings.extend(result.errors)
        return result.reservations

    def _static_reservations(self, warnings: list[str]) -> list[Reservation]:
        if not self._static_files:
            return []
        try:
            return load_static_reservations(self._static_files, self._data_dir)
        except CsvImportError as e:
            logger.warning("Static CSV load failed, continuing without it: %s", e)
            warnings.append(f"Static CSV load failed: {e}")
            return []

    async def month_reservations(self, year: int, month: int) -> MonthReservations:
        """Gather every reservation overlapping a month.

        Lodgify failures propagate; VRBO and static CSV failures are
        logged and reported as warnings.

        Raises:
            LodgifyServiceError: If the Lodgify call fails.
        """
        start, end = fetch_window(year, month)
        fetched = await self._lodgify.get_reservations(start, end)
        reservations = convert_lodgify_items(fetched.items, self._directory)

        result = MonthReservations(year=year, month=month)
        reservations = merge_reservations(
            reservations, await self._vrbo_reservations(result.warnings)
        )
        reservations = merge_reservations(
            reservations, self._static_reservations(result.warnings)
        )

        result.reservations = filter_reservations_for_month(reservations, year, month)
        logger.info(
            "Collected %d reservations for %d-%02d (%d warnings)",
            len(result.reservations),
            year,
            month,
            len(result.warnings),
        )
        return result

    async def month_calendars(
        self,
        year: int,
        month: int,
        apartment: str | None = None,
        exact: bool = False,
    ) -> tuple[list[ApartmentCalendar], list[str]]:
        """Build calendars for a month, optionally for one apartment.

        Args:
            year: Calendar year.
            month: Month, 1-based.
            apartment: Case-insensitive substring of the apartment name.
            exact: Match the whole apartment name instead of a substring.

        Returns:
            Tuple of (calendars, warnings).
        """
        collected = await self.month_reservations(year, month)
        calendars = collected.calendars()
        if apartment:
            needle = apartment.lower()
            if exact:
                calendars = [c for c in calendars if c.apartment_name.lower() == needle]
            else:
                calendars = [c for c in calendars if needle in c.apartment_name.lower()]
        return calendars, collected.warnings
