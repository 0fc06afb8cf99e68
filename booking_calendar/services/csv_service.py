# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Import of reservation CSV exports."""

import io
import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import pandas as pd

from booking_calendar.config import get_settings
from booking_calendar.models.reservation import Reservation

logger = logging.getLogger(__name__)

# Only these statuses represent bookings that occupy the apartment
ACTIVE_STATUSES = frozenset({"Booked", "Open"})

EXPORT_COLUMNS = (
    "Id",
    "Type",
    "Source",
    "SourceText",
    "Name",
    "DateArrival",
    "DateDeparture",
    "Nights",
    "HouseName",
    "InternalCode",
    "House_Id",
    "RoomTypes",
    "People",
    "DateCreated",
    "TotalAmount",
    "Currency",
    "Status",
    "Email",
    "Phone",
    "CountryName",
)

REQUIRED_COLUMNS = frozenset({"Id", "DateArrival", "DateDeparture", "HouseName"})


class CsvImportError(Exception):
    """Exception raised when a CSV export cannot be read."""

    pass


class InvalidCsvFilenameError(CsvImportError):
    """Exception raised for filenames outside the data directory."""

    pass


class CsvFileNotFoundError(CsvImportError):
    """Exception raised when a static CSV file does not exist."""

    pass


def _to_int(value: Any) -> int:
    """Parse an integer cell, defaulting to zero."""
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _to_decimal(value: Any) -> Decimal:
    """Parse a money cell, defaulting to zero."""
    try:
        return Decimal(str(value).strip() or "0")
    except InvalidOperation:
        return Decimal("0")


def read_csv_frame(data: bytes | str) -> pd.DataFrame:
    """Read CSV content into a DataFrame of strings.

    Args:
        data: Raw CSV bytes or text.

    Returns:
        DataFrame with every cell as a string ('' for missing).

    Raises:
        CsvImportError: If the content is not parseable CSV.
    """
    buffer = io.BytesIO(data) if isinstance(data, bytes) else io.StringIO(data)
    try:
        return pd.read_csv(
            buffer, dtype=str, keep_default_na=False, skip_blank_lines=True
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        msg = f"Failed to parse CSV: {e}"
        raise CsvImportError(msg) from e


def parse_reservations(frame: pd.DataFrame) -> list[Reservation]:
    """Convert an export DataFrame into active reservations.

    Rows whose status is not Booked/Open, or whose arrival/departure
    cannot be parsed, are dropped.

    Args:
        frame: DataFrame from :func:`read_csv_frame`.

    Returns:
        List of reservations in file order.

    Raises:
        CsvImportError: If required columns are missing.
    """
    missing = REQUIRED_COLUMNS - set(frame.columns)
    if missing:
        msg = f"CSV is missing required columns: {', '.join(sorted(missing))}"
        raise CsvImportError(msg)

    frame = frame.reindex(columns=list(EXPORT_COLUMNS), fill_value="")
    arrivals = pd.to_datetime(frame["DateArrival"], errors="coerce")
    departures = pd.to_datetime(frame["DateDeparture"], errors="coerce")
    created = pd.to_datetime(frame["DateCreated"], errors="coerce")

    mask = frame["Status"].isin(ACTIVE_STATUSES) & arrivals.notna() & departures.notna()
    dropped = int((~mask).sum())
    if dropped:
        logger.debug("Dropped %d CSV rows (inactive status or bad dates)", dropped)

    reservations: list[Reservation] = []
    for index in frame.index[mask.to_numpy()]:
        row = frame.loc[index]
        created_at = created[index]
        reservations.append(
            Reservation(
                id=str(row["Id"]),
                arrival=arrivals[index].date(),
                departure=departures[index].date(),
                house_name=str(row["HouseName"]),
                house_id=str(row["House_Id"]),
                source=str(row["Source"]) or "Website",
                source_text=str(row["SourceText"]),
                guest_name=str(row["Name"]),
                email=str(row["Email"]),
                phone=str(row["Phone"]),
                country=str(row["CountryName"]),
                people=_to_int(row["People"]),
                total_amount=_to_decimal(row["TotalAmount"]),
                currency=str(row["Currency"]) or "EUR",
                status=str(row["Status"]),
                created_at=None if pd.isna(created_at) else created_at.to_pydatetime(),
            )
        )
    return reservations


def parse_csv_reservations(data: bytes | str) -> list[Reservation]:
    """Parse CSV export content into active reservations."""
    return parse_reservations(read_csv_frame(data))


def validate_filename(filename: str) -> str:
    """Reject filenames that could leave the data directory.

    Raises:
        InvalidCsvFilenameError: If the name is not a plain ``.csv`` name.
    """
    if (
        not filename.endswith(".csv")
        or ".." in filename
        or "/" in filename
        or "\\" in filename
    ):
        msg = f"Invalid filename: {filename}"
        raise InvalidCsvFilenameError(msg)
    return filename


def static_csv_path(filename: str, data_dir: Path | None = None) -> Path:
    """Resolve a static CSV filename inside the data directory.

    Raises:
        InvalidCsvFilenameError: If the filename is unsafe.
        CsvFileNotFoundError: If the file does not exist.
    """
    base = data_dir if data_dir is not None else get_settings().data_dir
    path = base / validate_filename(filename)
    if not path.is_file():
        msg = f"File {filename} not found"
        raise CsvFileNotFoundError(msg)
    return path


def load_static_rows(filename: str, data_dir: Path | None = None) -> list[dict[str, str]]:
    """Load a static CSV file as raw rows."""
    path = static_csv_path(filename, data_dir)
    logger.info("Loading static CSV file: %s", path)
    frame = read_csv_frame(path.read_bytes())
    rows: list[dict[str, str]] = frame.to_dict(orient="records")
    return rows


def load_static_reservations(
    filenames: Iterable[str], data_dir: Path | None = None
) -> list[Reservation]:
    """Load reservations from several static CSV files.

    Raises:
        CsvImportError: If any file is unsafe, missing or malformed.
    """
    reservations: list[Reservation] = []
    for filename in filenames:
        path = static_csv_path(filename, data_dir)
        parsed = parse_csv_reservations(path.read_bytes())
        logger.info("Loaded %d reservations from %s", len(parsed), filename)
        reservations.extend(parsed)
    return reservations


def merge_reservations(
    primary: Sequence[Reservation], extra: Iterable[Reservation]
) -> list[Reservation]:
    """Append reservations whose id is not already present.

    Args:
        primary: Reservations that win on id collisions.
        extra: Reservations to add.

    Returns:
        New combined list.
    """
    merged = list(primary)
    seen = {r.id for r in merged}
    for reservation in extra:
        if reservation.id in seen:
            continue
        seen.add(reservation.id)
        merged.append(reservation)
    return merged
