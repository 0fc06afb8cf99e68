# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for CSV export import."""

from datetime import date
from decimal import Decimal

import pytest

from booking_calendar.models.reservation import Reservation
from booking_calendar.services.csv_service import (
    CsvFileNotFoundError,
    CsvImportError,
    InvalidCsvFilenameError,
    load_static_reservations,
    load_static_rows,
    merge_reservations,
    parse_csv_reservations,
    validate_filename,
)


class TestParseCsv:
    """Tests for parsing CSV exports."""

    def test_keeps_active_rows(self, sample_csv):
        """Test declined and malformed rows are dropped."""
        reservations = parse_csv_reservations(sample_csv)

        assert [r.id for r in reservations] == ["B1", "B2", "B5"]

    def test_row_fields(self, sample_csv):
        """Test a booked row converts field by field."""
        res = parse_csv_reservations(sample_csv)[0]

        assert res.arrival == date(2025, 3, 3)
        assert res.departure == date(2025, 3, 6)
        assert res.source == "Airbnb"
        assert res.guest_name == "Ana Lopez"
        assert res.people == 2
        assert res.total_amount == Decimal("450.00")
        assert res.country == "Spain"
        assert res.created_at is not None

    def test_blank_cells_default(self, sample_csv):
        """Test blank people and amount cells default to zero."""
        res = parse_csv_reservations(sample_csv)[1]

        assert res.people == 0
        assert res.total_amount == Decimal("0")
        assert res.status == "Open"

    def test_bytes_input(self, sample_csv):
        """Test bytes content parses the same as text."""
        assert len(parse_csv_reservations(sample_csv.encode())) == 3

    def test_missing_required_columns(self):
        """Test a CSV without the booking columns is rejected."""
        with pytest.raises(CsvImportError, match="missing required columns"):
            parse_csv_reservations("Foo,Bar\n1,2\n")

    def test_empty_content(self):
        """Test empty content is rejected."""
        with pytest.raises(CsvImportError):
            parse_csv_reservations("")


class TestStaticFiles:
    """Tests for static CSV files in the data directory."""

    @pytest.mark.parametrize(
        "filename", ["../secrets.csv", "dir/file.csv", "dir\\file.csv", "notes.txt"]
    )
    def test_invalid_filenames(self, filename):
        """Test unsafe names are rejected."""
        with pytest.raises(InvalidCsvFilenameError):
            validate_filename(filename)

    def test_valid_filename(self):
        """Test a plain CSV name passes through."""
        assert validate_filename("export.csv") == "export.csv"

    def test_missing_file(self, tmp_path):
        """Test a missing file raises CsvFileNotFoundError."""
        with pytest.raises(CsvFileNotFoundError):
            load_static_rows("absent.csv", tmp_path)

    def test_rows_and_reservations(self, tmp_path, sample_csv):
        """Test a static file loads as rows and as reservations."""
        (tmp_path / "export.csv").write_text(sample_csv)

        rows = load_static_rows("export.csv", tmp_path)
        reservations = load_static_reservations(["export.csv"], tmp_path)

        assert len(rows) == 5
        assert rows[0]["Id"] == "B1"
        assert [r.id for r in reservations] == ["B1", "B2", "B5"]


class TestMergeReservations:
    """Tests for combining sources."""

    def test_primary_wins_on_duplicate_ids(self):
        """Test extra reservations with a known id are ignored."""
        primary = [Reservation("1", date(2025, 3, 1), date(2025, 3, 2), "A")]
        extra = [
            Reservation("1", date(2025, 4, 1), date(2025, 4, 2), "A"),
            Reservation("2", date(2025, 3, 5), date(2025, 3, 6), "A"),
            Reservation("2", date(2025, 3, 7), date(2025, 3, 8), "A"),
        ]

        merged = merge_reservations(primary, extra)

        assert [r.id for r in merged] == ["1", "2"]
        assert merged[0].arrival == date(2025, 3, 1)
        assert merged[1].arrival == date(2025, 3, 5)
