# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Shared table of apartments and their naming rules."""

import json
import logging
import re
from collections.abc import Mapping
from functools import lru_cache

from booking_calendar.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_PROPERTY_NAMES: dict[int, str] = {
    685237: "At Home in Madrid IX, Trendy Chueca, Prado, GranVia",
    685238: "At Home in Madrid X, Center, Prado, Barrio Letras",
    685239: "At Home in Madrid VIII, Centro, Prado, Letras",
    685240: "At Home in Madrid VII, Trendy Neighborhood",
    685241: "At Home in Madrid VI, Centro, Prado, Barrio Letras",
    685242: "At Home in Madrid II, Centro, Prado, Barrio Letras",
    685243: "At Home in Madrid I, Centro de Madrid",
    685244: "At Home in Madrid III, Centro, Prado, BarrioLetras",
    685245: "At Home in Madrid IV, Centro, Prado, Barrio Letras",
    685246: "At Home in Madrid V, Centro, Prado, Barrio Letras",
}

APARTMENT_CODES: dict[str, str] = {
    "I": "1C",
    "II": "2C",
    "III": "3C",
    "IV": "1B",
    "V": "1E",
    "VI": "1A",
    "VII": "Libertad1",
    "VIII": "2E",
    "IX": "Libertad2",
    "X": "Entreplanta",
}

MONTH_NAMES = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)

# Longer numerals first so IV is not read as I
_NUMERAL_PATTERN = re.compile(r"At Home in Madrid (VIII|VII|VI|IX|IV|III|II|X|V|I)\b")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def month_name(month: int) -> str:
    """Get the Spanish month name for a 1-based month."""
    return MONTH_NAMES[month - 1]


def roman_numeral(apartment_name: str) -> str:
    """Extract the Roman numeral identifying an apartment, or ''."""
    match = _NUMERAL_PATTERN.search(apartment_name)
    return match.group(1) if match else ""


def apartment_code(apartment_name: str) -> str:
    """Get the internal apartment code (e.g. ``2E``), or ''."""
    return APARTMENT_CODES.get(roman_numeral(apartment_name), "")


def display_name(apartment_name: str) -> str:
    """Get ``{code}_AtHomeInMadrid_{numeral}`` or the name unchanged."""
    code = apartment_code(apartment_name)
    numeral = roman_numeral(apartment_name)
    if code and numeral:
        return f"{code}_AtHomeInMadrid_{numeral}"
    return apartment_name


def calendar_filename(apartment_name: str, month: int, year: int) -> str:
    """Get the PDF filename for an apartment's month calendar."""
    code = apartment_code(apartment_name)
    numeral = roman_numeral(apartment_name)
    name = month_name(month)
    if code and numeral:
        return f"{code}_AtHomeInMadrid_{numeral}_{name}{year}.pdf"
    clean = _UNSAFE_FILENAME_CHARS.sub("_", apartment_name)
    return f"{clean}_{name}_{year}.pdf"


class PropertyDirectory:
    """Lookup of Lodgify property ids to apartment names."""

    def __init__(self, names: Mapping[int, str] | None = None) -> None:
        """Initialize directory.

        Args:
            names: Property id to name table. Defaults to the built-in table.
        """
        self._names = dict(names if names is not None else DEFAULT_PROPERTY_NAMES)

    def name_for(self, property_id: int | str | None) -> str:
        """Get apartment name for a property id with a generic fallback."""
        try:
            key = int(property_id)
        except (TypeError, ValueError):
            return f"Propiedad {property_id}"
        return self._names.get(key, f"Propiedad {property_id}")

    def items(self) -> list[tuple[int, str]]:
        """All (property id, name) pairs ordered by id."""
        return sorted(self._names.items())

    def __contains__(self, property_id: object) -> bool:
        """Check whether a property id is known."""
        return property_id in self._names

    def __len__(self) -> int:
        """Number of known properties."""
        return len(self._names)


def parse_property_names(raw: str) -> dict[int, str]:
    """Parse a JSON object of property id to name.

    Raises:
        ValueError: If the JSON is malformed or keys are not integers.
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        msg = "Property names must be a JSON object"
        raise ValueError(msg)
    return {int(key): str(value) for key, value in data.items()}


@lru_cache
def get_property_directory() -> PropertyDirectory:
    """Get the configured property directory.

    Returns:
        PropertyDirectory from settings, or the built-in table.
    """
    raw = get_settings().property_names_json
    if not raw:
        return PropertyDirectory()
    try:
        return PropertyDirectory(parse_property_names(raw))
    except ValueError:
        logger.exception("Invalid PROPERTY_NAMES_JSON, using built-in table")
        return PropertyDirectory()
