# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Revenue and commission report over Lodgify reservations."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from booking_calendar.config import get_settings
from booking_calendar.services.lodgify_service import (
    LodgifyService,
    parse_amount,
    parse_date,
    parse_timestamp,
)
from booking_calendar.services.property_directory import PropertyDirectory

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

INTEGRATION_SOURCES = {
    "AirbnbIntegration": "Airbnb",
    "BookingIntegration": "Booking.com",
    "VrboIntegration": "VRBO",
    "ExpediaIntegration": "Expedia",
    "direct": "Website",
    "manual": "Website",
}

# Period name -> number of days from today; custom takes explicit dates
TIME_PERIODS = {
    "next_week": 7,
    "next_2_weeks": 14,
    "next_month": 30,
    "next_3_months": 90,
    "custom": 0,
}
DEFAULT_PERIOD = "next_month"


class InvalidPeriodError(ValueError):
    """Exception raised for an unknown or incomplete report period."""

    pass


def map_integration_source(raw_source: str | None) -> str:
    """Map a Lodgify integration name to a channel, defaulting to Website."""
    return INTEGRATION_SOURCES.get(raw_source or "direct", "Website")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_commission(
    source: str,
    total_amount: Decimal,
    rate: Decimal | None = None,
    commission_sources: Iterable[str] | None = None,
) -> tuple[Decimal, Decimal, Decimal]:
    """Commission owed to the channel and the amount left for the owner.

    Args:
        source: Channel name.
        total_amount: Gross booking amount.
        rate: Commission percentage. Defaults to the configured rate.
        commission_sources: Channels that charge commission. Defaults to
            the configured set.

    Returns:
        Tuple of (commission, applied rate, net amount), money in cents.
    """
    settings = get_settings()
    if rate is None:
        rate = Decimal(str(settings.commission_rate))
    sources = (
        frozenset(commission_sources)
        if commission_sources is not None
        else settings.commission_source_names
    )
    applied = rate if source in sources else Decimal("0")
    commission = _cents(total_amount * applied / 100)
    return commission, applied, _cents(total_amount - commission)


def period_range(
    period: str,
    today: date | None = None,
    start: date | None = None,
    end: date | None = None,
) -> tuple[date, date]:
    """Resolve a report period to a closed date interval.

    Args:
        period: One of ``TIME_PERIODS``.
        today: Reference day for relative periods. Defaults to today.
        start: First day, required for ``custom``.
        end: Last day, required for ``custom``.

    Returns:
        Tuple of (start, end).

    Raises:
        InvalidPeriodError: If the period is unknown, or custom dates are
            missing or reversed.
    """
    if period not in TIME_PERIODS:
        msg = f"Unknown period: {period}"
        raise InvalidPeriodError(msg)
    if period == "custom":
        if start is None or end is None:
            msg = "Custom period requires start and end dates"
            raise InvalidPeriodError(msg)
        if end < start:
            msg = "Custom period end is before start"
            raise InvalidPeriodError(msg)
        return start, end
    today = today or date.today()
    return today, today + timedelta(days=TIME_PERIODS[period])


@dataclass(frozen=True)
class AccountingEntry:
    """One reservation with its commission breakdown."""

    id: str
    guest_name: str
    email: str
    phone: str
    property_id: int | None
    property_name: str
    arrival: date
    departure: date
    nights: int
    source: str
    total_amount: Decimal
    commission: Decimal
    commission_rate: Decimal
    net_amount: Decimal
    currency: str
    status: str
    people: int
    created_at: datetime | None = None


@dataclass
class AccountingReport:
    """Entries for a period plus totals."""

    start: date
    end: date
    entries: list[AccountingEntry] = field(default_factory=list)

    @property
    def total_revenue(self) -> Decimal:
        """Sum of gross amounts."""
        return sum((e.total_amount for e in self.entries), Decimal("0"))

    @property
    def total_commission(self) -> Decimal:
        """Sum of commissions."""
        return sum((e.commission for e in self.entries), Decimal("0"))

    @property
    def total_net(self) -> Decimal:
        """Sum of net amounts."""
        return sum((e.net_amount for e in self.entries), Decimal("0"))


def _property_id(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def to_accounting_entry(
    item: dict[str, Any], directory: PropertyDirectory
) -> AccountingEntry:
    """Convert a Lodgify booking payload to an accounting entry.

    Args:
        item: Booking dict from the Lodgify API.
        directory: Property directory for names.

    Returns:
        AccountingEntry with commission applied.
    """
    guest = item.get("guest") or {}
    property_id = _property_id(item.get("property_id"))
    source = map_integration_source(item.get("source"))
    total = _cents(parse_amount(item.get("total_amount")))
    commission, rate, net = calculate_commission(source, total)
    arrival = parse_date(item["arrival"])
    departure = parse_date(item["departure"])

    return AccountingEntry(
        id=str(item["id"]),
        guest_name=guest.get("name") or "Sin nombre",
        email=guest.get("email") or "",
        phone=guest.get("phone") or "",
        property_id=property_id,
        property_name=directory.name_for(item.get("property_id")),
        arrival=arrival,
        departure=departure,
        nights=(departure - arrival).days,
        source=source,
        total_amount=total,
        commission=commission,
        commission_rate=rate,
        net_amount=net,
        currency=item.get("currency_code") or "EUR",
        status=item.get("status") or "Unknown",
        people=int(item.get("people_count") or 1),
        created_at=parse_timestamp(item.get("created_at")),
    )


def filter_entries(
    entries: Iterable[AccountingEntry],
    start: date,
    end: date,
    property_id: int | None = None,
) -> list[AccountingEntry]:
    """Entries overlapping ``[start, end]``, optionally for one property.

    Returns:
        Matching entries sorted by arrival, soonest first.
    """
    kept = [
        e
        for e in entries
        if e.arrival <= end
        and e.departure >= start
        and (property_id is None or e.property_id == property_id)
    ]
    kept.sort(key=lambda e: e.arrival)
    return kept


def build_report(
    items: Sequence[dict[str, Any]],
    start: date,
    end: date,
    directory: PropertyDirectory,
    property_id: int | None = None,
) -> AccountingReport:
    """Build the report from raw Lodgify bookings.

    Bookings that cannot be parsed are logged and skipped.
    """
    entries: list[AccountingEntry] = []
    for item in items:
        try:
            entries.append(to_accounting_entry(item, directory))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Skipping malformed booking %s: %s", item.get("id"), e)
    report = AccountingReport(
        start=start,
        end=end,
        entries=filter_entries(entries, start, end, property_id),
    )
    logger.info(
        "Accounting report %s..%s: %d of %d reservations",
        start,
        end,
        len(report.entries),
        len(entries),
    )
    return report


async def fetch_report(
    lodgify: LodgifyService,
    directory: PropertyDirectory,
    period: str = DEFAULT_PERIOD,
    start: date | None = None,
    end: date | None = None,
    property_id: int | None = None,
    today: date | None = None,
) -> AccountingReport:
    """Fetch confirmed Lodgify bookings for a period and build the report.

    Raises:
        InvalidPeriodError: If the period cannot be resolved.
        LodgifyServiceError: If the Lodgify call fails.
    """
    period_start, period_end = period_range(period, today=today, start=start, end=end)
    result = await lodgify.get_reservations(period_start, period_end)
    return build_report(result.items, period_start, period_end, directory, property_id)
