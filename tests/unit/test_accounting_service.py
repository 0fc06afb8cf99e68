# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for the accounting report."""

from datetime import date
from decimal import Decimal

import pytest

from booking_calendar.services.accounting_service import (
    InvalidPeriodError,
    build_report,
    calculate_commission,
    fetch_report,
    map_integration_source,
    period_range,
    to_accounting_entry,
)
from booking_calendar.services.lodgify_service import LodgifyFetchResult
from booking_calendar.services.property_directory import PropertyDirectory


def _item(booking_id: int, arrival: str, departure: str, **extra) -> dict:
    item = {
        "id": booking_id,
        "status": "Booked",
        "property_id": 685243,
        "arrival": arrival,
        "departure": departure,
        "source": "AirbnbIntegration",
        "total_amount": 100,
    }
    item.update(extra)
    return item


class TestCommission:
    """Tests for commission arithmetic."""

    def test_commission_source(self):
        """Test commission channels are charged the rate."""
        commission, rate, net = calculate_commission(
            "Airbnb", Decimal("520.00"), Decimal("15"), ["Airbnb", "VRBO"]
        )

        assert commission == Decimal("78.00")
        assert rate == Decimal("15")
        assert net == Decimal("442.00")

    def test_non_commission_source(self):
        """Test other channels keep the full amount."""
        commission, rate, net = calculate_commission(
            "Website", Decimal("200"), Decimal("15"), ["Airbnb"]
        )

        assert commission == Decimal("0.00")
        assert rate == Decimal("0")
        assert net == Decimal("200.00")

    def test_rounds_half_up_to_cents(self):
        """Test commissions are rounded half up."""
        commission, _, net = calculate_commission(
            "Airbnb", Decimal("0.10"), Decimal("15"), ["Airbnb"]
        )

        assert commission == Decimal("0.02")
        assert net == Decimal("0.08")

    def test_defaults_from_settings(self):
        """Test the configured rate and sources apply by default."""
        commission, rate, _ = calculate_commission("VRBO", Decimal("100"))

        assert rate == Decimal("15.0")
        assert commission == Decimal("15.00")

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("AirbnbIntegration", "Airbnb"),
            ("BookingIntegration", "Booking.com"),
            ("VrboIntegration", "VRBO"),
            (None, "Website"),
            ("SomethingNew", "Website"),
        ],
    )
    def test_map_integration_source(self, raw, expected):
        """Test integration names map onto channels."""
        assert map_integration_source(raw) == expected


class TestPeriodRange:
    """Tests for period resolution."""

    def test_relative_periods(self):
        """Test relative periods count days from today."""
        today = date(2025, 3, 1)

        assert period_range("next_week", today) == (today, date(2025, 3, 8))
        assert period_range("next_3_months", today) == (today, date(2025, 5, 30))

    def test_custom(self):
        """Test custom periods use explicit dates."""
        start, end = date(2025, 1, 1), date(2025, 1, 31)

        assert period_range("custom", start=start, end=end) == (start, end)

    @pytest.mark.parametrize(
        ("period", "start", "end", "message"),
        [
            ("yearly", None, None, "Unknown period"),
            ("custom", None, date(2025, 1, 1), "requires start and end"),
            ("custom", date(2025, 2, 1), date(2025, 1, 1), "end is before start"),
        ],
    )
    def test_invalid(self, period, start, end, message):
        """Test unknown, incomplete and reversed periods are rejected."""
        with pytest.raises(InvalidPeriodError, match=message):
            period_range(period, start=start, end=end)


class TestReport:
    """Tests for building the report."""

    def test_entry_fields(self, lodgify_booking):
        """Test a booking converts with commission applied."""
        entry = to_accounting_entry(lodgify_booking, PropertyDirectory())

        assert entry.property_name == "At Home in Madrid VIII, Centro, Prado, Letras"
        assert entry.source == "Airbnb"
        assert entry.total_amount == Decimal("520.00")
        assert entry.commission == Decimal("78.00")
        assert entry.net_amount == Decimal("442.00")
        assert entry.nights == 4
        assert entry.people == 1

    def test_filters_sorts_and_totals(self):
        """Test overlap filtering, arrival order and totals."""
        items = [
            _item(1, "2025-03-20", "2025-03-22", source="direct"),
            _item(2, "2025-03-02", "2025-03-05"),
            _item(3, "2025-05-01", "2025-05-03"),
            {"id": 4, "arrival": "bad"},
        ]

        report = build_report(
            items, date(2025, 3, 1), date(2025, 3, 31), PropertyDirectory()
        )

        assert [e.id for e in report.entries] == ["2", "1"]
        assert report.total_revenue == Decimal("200.00")
        assert report.total_commission == Decimal("15.00")
        assert report.total_net == Decimal("185.00")

    def test_wrongly_typed_fields_are_skipped(self, caplog):
        """Test a booking with a non-numeric people count is dropped, not fatal."""
        items = [
            _item(1, "2025-03-02", "2025-03-05", people_count=[2]),
            _item(2, "2025-03-10", "2025-03-12", people_count=2),
        ]

        with caplog.at_level("WARNING"):
            report = build_report(
                items, date(2025, 3, 1), date(2025, 3, 31), PropertyDirectory()
            )

        assert [e.id for e in report.entries] == ["2"]
        assert report.entries[0].people == 2
        assert "Skipping malformed booking 1" in caplog.text

    def test_property_filter(self):
        """Test a property id narrows the report."""
        items = [
            _item(1, "2025-03-02", "2025-03-05"),
            _item(2, "2025-03-02", "2025-03-05", property_id=685245),
        ]

        report = build_report(
            items, date(2025, 3, 1), date(2025, 3, 31), PropertyDirectory(), 685245
        )

        assert [e.id for e in report.entries] == ["2"]

    @pytest.mark.asyncio
    async def test_fetch_report(self):
        """Test the period is resolved and passed to Lodgify."""
        calls = []

        class FakeLodgify:
            async def get_reservations(self, start, end, include_all=False):
                calls.append((start, end))
                return LodgifyFetchResult(
                    items=[_item(1, "2025-03-02", "2025-03-05")]
                )

        report = await fetch_report(
            FakeLodgify(),
            PropertyDirectory(),
            "next_week",
            today=date(2025, 3, 1),
        )

        assert calls == [(date(2025, 3, 1), date(2025, 3, 8))]
        assert len(report.entries) == 1
