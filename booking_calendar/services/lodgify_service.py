# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Lodgify API client for booking data."""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from http import HTTPStatus
from typing import Any

import httpx

from booking_calendar.config import get_settings
from booking_calendar.models.reservation import Reservation
from booking_calendar.services.property_directory import PropertyDirectory

logger = logging.getLogger(__name__)

CONFIRMED_STATUSES = frozenset({"Booked", "confirmed", "Confirmed"})

# Lodgify caps pages at 50 items regardless of the requested limit
PAGE_LIMIT = 50
MAX_PAGES = 20

MAX_RETRIES = 3
BASE_DELAY_SECONDS = 1.0
MAX_DELAY_SECONDS = 30.0
REQUEST_TIMEOUT_SECONDS = 30.0


class LodgifyServiceError(Exception):
    """Exception raised for Lodgify API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize LodgifyServiceError.

        Args:
            message: Error message.
            status_code: HTTP status returned by Lodgify, if any.
        """
        super().__init__(message)
        self.status_code = status_code


class LodgifyAuthError(LodgifyServiceError):
    """Exception raised when Lodgify rejects the API key."""

    pass


class RateLimitError(LodgifyServiceError):
    """Exception raised when API rate limit is exceeded."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        """Initialize RateLimitError.

        Args:
            message: Error message.
            retry_after: Seconds to wait before retry, if provided by API.
        """
        super().__init__(message, status_code=HTTPStatus.TOO_MANY_REQUESTS)
        self.retry_after = retry_after


@dataclass
class LodgifyFetchResult:
    """Reservations fetched across all pages plus breakdowns for logging."""

    items: list[dict[str, Any]] = field(default_factory=list)
    total_pages: int = 0
    include_all: bool = False

    @property
    def count(self) -> int:
        """Number of reservations kept."""
        return len(self.items)

    @property
    def property_stats(self) -> dict[str, int]:
        """Reservation count per property id."""
        return dict(Counter(str(item.get("property_id")) for item in self.items))

    @property
    def status_stats(self) -> dict[str, int]:
        """Reservation count per status."""
        return dict(Counter(str(item.get("status")) for item in self.items))

    @property
    def source_stats(self) -> dict[str, int]:
        """Reservation count per raw Lodgify source value."""
        return dict(
            Counter(str(item.get("source") or "no_source") for item in self.items)
        )

    @property
    def filter_applied(self) -> str:
        """Human-readable description of the status filter."""
        if self.include_all:
            return "All statuses included"
        return f"Confirmed only ({', '.join(sorted(CONFIRMED_STATUSES))})"


def map_source(raw_source: str | None) -> str:
    """Map a Lodgify source value onto a rendering channel.

    Args:
        raw_source: Source string as sent by Lodgify.

    Returns:
        One of Airbnb, VRBO, Booking.com, Expedia or Website.
    """
    value = (raw_source or "direct").lower()
    if "airbnb" in value:
        return "Airbnb"
    if "vrbo" in value or "homeaway" in value:
        return "VRBO"
    if "booking" in value:
        return "Booking.com"
    if "expedia" in value:
        return "Expedia"
    return "Website"


def parse_date(value: Any) -> date:
    """Parse a Lodgify ISO date or datetime string to a date."""
    return datetime.fromisoformat(str(value)).date()


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an optional ISO timestamp, ignoring malformed values."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def parse_amount(value: Any) -> Decimal:
    """Parse a money amount, defaulting to zero."""
    try:
        return Decimal(str(value)) if value is not None else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


def _count_people(rooms: list[dict[str, Any]] | None) -> int:
    """Total guests across rooms (``people`` or adults + children)."""
    total = 0
    for room in rooms or []:
        people = room.get("people")
        if people:
            total += int(people)
            continue
        breakdown = room.get("guest_breakdown") or {}
        total += int(breakdown.get("adults") or 0) + int(
            breakdown.get("children") or 0
        )
    return total


def to_reservation(item: dict[str, Any], directory: PropertyDirectory) -> Reservation:
    """Convert a Lodgify booking payload to a Reservation.

    Args:
        item: Booking dict from the Lodgify API.
        directory: Property directory for apartment names.

    Returns:
        Normalized Reservation.
    """
    guest = item.get("guest") or {}
    property_id = item.get("property_id")

    return Reservation(
        id=str(item["id"]),
        arrival=parse_date(item["arrival"]),
        departure=parse_date(item["departure"]),
        house_name=directory.name_for(property_id),
        house_id=str(property_id),
        source=map_source(item.get("source")),
        source_text=str(item.get("source") or ""),
        guest_name=guest.get("name") or "Sin nombre",
        email=guest.get("email") or "",
        phone=guest.get("phone") or "",
        people=_count_people(item.get("rooms")) or int(item.get("people_count") or 0),
        total_amount=parse_amount(item.get("total_amount")),
        currency=item.get("currency_code") or "EUR",
        status=item.get("status") or "Unknown",
        created_at=parse_timestamp(item.get("created_at")),
    )


class LodgifyService:
    """Client for the Lodgify reservations API.

    Fetches all pages of bookings for a date window, keeping confirmed
    bookings only unless asked otherwise, with retry on rate limiting.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize LodgifyService.

        Args:
            api_key: Lodgify API key. Defaults to settings.
            base_url: API base URL. Defaults to settings.
            transport: Optional httpx transport (used by tests).
        """
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.lodgify_api_key
        self._base_url = (base_url or settings.lodgify_base_url).rstrip("/")
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        """Get request headers including the API key.

        Raises:
            LodgifyAuthError: If no API key is configured.
        """
        if not self._api_key:
            msg = "No Lodgify API key configured"
            raise LodgifyAuthError(msg)
        return {
            "X-ApiKey": self._api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        """Create an HTTP client for one batch of requests."""
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._get_headers(),
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    async def _with_retry(
        self,
        operation: str,
        func: Any,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Execute an API call with exponential backoff retry on rate limit.

        Args:
            operation: Description of operation for logging.
            func: Async function to call.
            *args: Positional arguments for func.
            **kwargs: Keyword arguments for func.

        Returns:
            Result from func.

        Raises:
            LodgifyServiceError: If all retries fail.
        """
        last_error: Exception | None = None
        delay = BASE_DELAY_SECONDS

        for attempt in range(MAX_RETRIES + 1):
            try:
                return await func(*args, **kwargs)
            except RateLimitError as e:
                last_error = e
                if attempt == MAX_RETRIES:
                    break

                wait_time = e.retry_after if e.retry_after else delay
                wait_time = min(wait_time, MAX_DELAY_SECONDS)

                logger.warning(
                    "%s rate limited, retrying in %.1fs (attempt %d/%d)",
                    operation,
                    wait_time,
                    attempt + 1,
                    MAX_RETRIES,
                )
                await asyncio.sleep(wait_time)
                delay *= 2

        msg = f"{operation} failed after {MAX_RETRIES} retries: {last_error}"
        raise LodgifyServiceError(msg) from last_error

    @staticmethod
    def _check_response(response: httpx.Response) -> None:
        """Raise the matching error for a non-200 response."""
        if response.status_code == HTTPStatus.OK:
            return
        if response.status_code == HTTPStatus.TOO_MANY_REQUESTS:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "Rate limited",
                retry_after=float(retry_after) if retry_after else None,
            )
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            msg = "Lodgify rejected the API key"
            raise LodgifyAuthError(msg, status_code=response.status_code)
        logger.error("Lodgify API error: %s %s", response.status_code, response.text)
        msg = f"Lodgify API error: {response.status_code}"
        raise LodgifyServiceError(msg, status_code=response.status_code)

    async def _fetch_page(
        self,
        client: httpx.AsyncClient,
        start_date: date,
        end_date: date,
        page: int,
    ) -> list[dict[str, Any]]:
        """Fetch one page of bookings."""
        response = await client.get(
            "/reservations/bookings",
            params={
                "startDate": start_date.isoformat(),
                "endDate": end_date.isoformat(),
                "page": page,
                "limit": PAGE_LIMIT,
            },
        )
        self._check_response(response)

        data = response.json()
        if isinstance(data, list):
            return data
        items: list[dict[str, Any]] = data.get("items") or []
        return items

    async def get_reservations(
        self,
        start_date: date,
        end_date: date,
        include_all: bool = False,
    ) -> LodgifyFetchResult:
        """Fetch every booking in a date window.

        Args:
            start_date: Window start.
            end_date: Window end.
            include_all: Keep all statuses instead of confirmed only.

        Returns:
            LodgifyFetchResult with the kept bookings.

        Raises:
            LodgifyAuthError: If the API key is missing or rejected.
            LodgifyServiceError: If the API call fails.
        """
        result = LodgifyFetchResult(include_all=include_all)
        logger.info("Fetching Lodgify reservations from %s to %s", start_date, end_date)

        async with self._client() as client:
            page = 1
            while True:
                items = await self._with_retry(
                    f"get_reservations page {page}",
                    self._fetch_page,
                    client,
                    start_date,
                    end_date,
                    page,
                )
                result.total_pages = page
                if not items:
                    break

                kept = (
                    items
                    if include_all
                    else [i for i in items if i.get("status") in CONFIRMED_STATUSES]
                )
                logger.debug(
                    "Page %d: %d kept of %d reservations", page, len(kept), len(items)
                )
                result.items.extend(kept)

                if len(items) < PAGE_LIMIT:
                    break
                if page >= MAX_PAGES:
                    logger.warning(
                        "Reached maximum page limit (%d), stopping pagination",
                        MAX_PAGES,
                    )
                    break
                page += 1

        logger.info(
            "Fetched %d reservations across %d properties",
            result.count,
            len(result.property_stats),
        )
        return result

    async def test_connection(self) -> dict[str, Any]:
        """Check the API key by listing properties.

        Returns:
            Dict with success flag, property count or error detail.
        """
        try:
            async with self._client() as client:
                response = await client.get("/properties")
                self._check_response(response)
                data = response.json()
        except LodgifyServiceError as e:
            return {"success": False, "status": e.status_code, "error": str(e)}
        except httpx.HTTPError as e:
            return {"success": False, "status": None, "error": str(e)}

        items = data if isinstance(data, list) else data.get("items") or []
        return {"success": True, "count": len(items)}
