# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""VRBO iCal feed sync into reservations."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path

import httpx
import pandas as pd
from icalendar import Calendar

from booking_calendar.config import get_settings
from booking_calendar.models.reservation import Reservation
from booking_calendar.services.cache import TTLCache
from booking_calendar.services.property_directory import roman_numeral

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 10.0
USER_AGENT = "Mozilla/5.0 (compatible; VRBO Calendar Sync)"

VRBO_GUEST_NAME = "vrbo-sync-res"
VRBO_DEFAULT_PEOPLE = 2


class VrboSyncError(Exception):
    """Exception raised when VRBO feeds cannot be synced."""

    pass


class VrboLinkNotFoundError(VrboSyncError):
    """Exception raised when no feed matches the requested apartment."""

    pass


@dataclass(frozen=True)
class VrboIcalLink:
    """An apartment and the URL of its VRBO calendar export."""

    apartment_name: str
    ical_url: str


@dataclass
class VrboSyncResult:
    """Outcome of syncing one or more feeds."""

    reservations: list[Reservation] = field(default_factory=list)
    processed_apartments: int = 0
    errors: list[str] = field(default_factory=list)
    last_sync: datetime = field(default_factory=lambda: datetime.now(UTC))


def load_ical_links(path: Path) -> list[VrboIcalLink]:
    """Read the apartment to feed URL table.

    Args:
        path: CSV file with ``apartment_name`` and ``ical_url`` columns.

    Returns:
        Links in file order, skipping rows without a URL.

    Raises:
        VrboSyncError: If the file is missing or malformed.
    """
    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    except FileNotFoundError as e:
        msg = f"VRBO link table not found: {path}"
        raise VrboSyncError(msg) from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        msg = f"Failed to parse VRBO link table: {e}"
        raise VrboSyncError(msg) from e

    if not {"apartment_name", "ical_url"} <= set(frame.columns):
        msg = "VRBO link table needs apartment_name and ical_url columns"
        raise VrboSyncError(msg)

    links = [
        VrboIcalLink(apartment_name=row.apartment_name, ical_url=row.ical_url)
        for row in frame.itertuples(index=False)
        if row.ical_url
    ]
    logger.info("Loaded %d VRBO iCal links", len(links))
    return links


def _as_date(value: date | datetime) -> date:
    """Normalize an iCal DTSTART/DTEND value to a date."""
    return value.date() if isinstance(value, datetime) else value


def parse_ical_reservations(content: str | bytes, apartment_name: str) -> list[Reservation]:
    """Convert the VEVENTs of a VRBO feed into reservations.

    Events missing a start or end, or spanning no nights, are skipped.

    Args:
        content: Raw iCal data.
        apartment_name: Apartment the feed belongs to.

    Returns:
        Reservations in feed order.
    """
    calendar = Calendar.from_ical(content)
    code = roman_numeral(apartment_name) or "Unknown"
    reservations: list[Reservation] = []

    for component in calendar.walk("VEVENT"):
        uid = str(component.get("uid") or "unknown")
        dtstart = component.get("dtstart")
        dtend = component.get("dtend")
        if dtstart is None or dtend is None:
            logger.warning("Event missing start or end date, skipping: %s", uid)
            continue

        arrival = _as_date(dtstart.dt)
        departure = _as_date(dtend.dt)
        if departure <= arrival:
            logger.warning("Invalid date range, skipping event: %s", uid)
            continue

        created = component.get("created")
        reservations.append(
            Reservation(
                id=f"VRBO_SYNC_{code}_{uid[-8:]}",
                arrival=arrival,
                departure=departure,
                house_name=apartment_name,
                house_id=code,
                source="VRBO",
                source_text="VRBO ICAL Sync",
                guest_name=VRBO_GUEST_NAME,
                people=VRBO_DEFAULT_PEOPLE,
                status="Booked",
                created_at=created.dt if created is not None else None,
            )
        )

    return reservations


class VrboSyncService:
    """Fetches VRBO iCal feeds and converts them to reservations.

    Parsed feeds are kept in an injected TTL cache keyed by URL.
    """

    def __init__(
        self,
        cache: TTLCache[list[Reservation]],
        links_path: Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize sync service.

        Args:
            cache: Cache for parsed feeds.
            links_path: Link table CSV. Defaults to the configured file.
            transport: Optional httpx transport (used by tests).
        """
        settings = get_settings()
        self._cache = cache
        self._links_path = links_path or settings.data_dir / settings.vrbo_links_csv
        self._transport = transport

    async def _fetch_feed(self, client: httpx.AsyncClient, url: str) -> str:
        """Download one feed.

        Raises:
            httpx.HTTPError: On network failure or non-2xx status.
        """
        logger.debug("Fetching iCal data from %s", url)
        response = await client.get(url)
        response.raise_for_status()
        return response.text

    async def sync(
        self, apartment: str | None = None, force_refresh: bool = False
    ) -> VrboSyncResult:
        """Sync every configured feed, or those matching an apartment.

        A failing feed is recorded in ``errors`` and does not stop the
        others.

        Args:
            apartment: Case-insensitive substring of the apartment name.
            force_refresh: Drop cached feeds and fetch them again.

        Returns:
            VrboSyncResult with all reservations found.

        Raises:
            VrboSyncError: If the link table cannot be read or is empty.
            VrboLinkNotFoundError: If no link matches ``apartment``.
        """
        links = load_ical_links(self._links_path)
        if not links:
            msg = "No VRBO iCal links found"
            raise VrboSyncError(msg)

        if apartment:
            needle = apartment.lower()
            links = [link for link in links if needle in link.apartment_name.lower()]
            if not links:
                msg = f"No iCal links found for apartment: {apartment}"
                raise VrboLinkNotFoundError(msg)

        result = VrboSyncResult(processed_apartments=len(links))

        async with httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for link in links:
                if force_refresh:
                    # A failed refresh must not leave the old feed to be served later
                    self._cache.invalidate(link.ical_url)
                cached = self._cache.get(link.ical_url)
                if cached is not None:
                    logger.debug("Using cached feed for %s", link.apartment_name)
                    result.reservations.extend(cached)
                    continue

                try:
                    content = await self._fetch_feed(client, link.ical_url)
                    reservations = parse_ical_reservations(content, link.apartment_name)
                except (httpx.HTTPError, ValueError) as e:
                    message = f"Failed to sync {link.apartment_name}: {e}"
                    logger.error(message)
                    result.errors.append(message)
                    continue

                self._cache.set(link.ical_url, reservations)
                result.reservations.extend(reservations)
                logger.info(
                    "Processed %d reservations for %s",
                    len(reservations),
                    link.apartment_name,
                )

        logger.info(
            "VRBO sync completed: %d reservations, %d errors",
            len(result.reservations),
            len(result.errors),
        )
        return result


_ics_cache: TTLCache[list[Reservation]] | None = None


def get_ics_cache() -> TTLCache[list[Reservation]]:
    """Get the process-wide feed cache sized from settings.

    Returns:
        TTLCache singleton.
    """
    global _ics_cache  # noqa: PLW0603
    if _ics_cache is None:
        _ics_cache = TTLCache(get_settings().ics_cache_ttl_minutes * 60)
    return _ics_cache
