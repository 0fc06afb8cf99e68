# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Deterministic booking colors per channel."""

import colorsys

BASE_COLORS: dict[str, str] = {
    "Airbnb": "#A020F0",
    "VRBO": "#10B981",
    "Website": "#3B82F6",
    "Booking.com": "#003580",
    "Expedia": "#FFC72C",
}

FALLBACK_COLOR = "#666666"

VARIATION_COUNT = 8

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def id_hash(value: str) -> int:
    """Hash a string to a signed 32-bit integer (``h * 31 + code``)."""
    h = 0
    for char in value:
        h = ((h << 5) - h + ord(char)) & _INT32_MASK
    return h - (1 << 32) if h & _INT32_SIGN else h


def hex_to_hsl(hex_color: str) -> tuple[float, float, float]:
    """Convert ``#rrggbb`` to (hue degrees, saturation %, lightness %)."""
    r, g, b = (int(hex_color[i : i + 2], 16) / 255 for i in (1, 3, 5))
    h, lightness, s = colorsys.rgb_to_hls(r, g, b)
    return h * 360, s * 100, lightness * 100


def hsl_to_hex(h: float, s: float, lightness: float) -> str:
    """Convert (hue degrees, saturation %, lightness %) to ``#rrggbb``."""
    r, g, b = colorsys.hls_to_rgb(h / 360, lightness / 100, s / 100)
    return "#" + "".join(f"{round(c * 255):02x}" for c in (r, g, b))


def _vary(s: float, lightness: float, variation: int) -> tuple[float, float]:
    """Apply one of the fixed saturation/lightness variations."""
    match variation:
        case 1:  # lighter
            lightness = min(lightness + 15, 90)
        case 2:  # darker
            lightness = max(lightness - 15, 30)
        case 3:  # more saturated
            s = min(s + 15, 100)
        case 4:  # less saturated
            s = max(s - 15, 25)
        case 5:
            lightness = min(lightness + 10, 85)
            s = min(s + 12, 95)
        case 6:
            lightness = max(lightness - 10, 35)
            s = min(s + 12, 95)
        case 7:
            lightness = (
                max(lightness - 20, 30) if lightness > 50 else min(lightness + 20, 80)
            )
            s = min(s + 8, 90)
    return s, lightness


def base_color(source: str) -> str:
    """Get the legend color for a channel."""
    return BASE_COLORS.get(source, FALLBACK_COLOR)


def color_for(source: str, reservation_id: str | None = None) -> str:
    """Get the display color for a booking.

    Bookings on the same channel share a hue; the reservation id picks a
    stable lightness/saturation variation so neighbouring bookings can be
    told apart.

    Args:
        source: Booking channel (Airbnb, VRBO, ...).
        reservation_id: Booking id; omit for the plain legend color.

    Returns:
        Color as ``#rrggbb``.
    """
    color = base_color(source)
    if not reservation_id:
        return color

    h, s, lightness = hex_to_hsl(color)
    variation = abs(id_hash(reservation_id)) % VARIATION_COUNT
    new_s, lightness = _vary(s, lightness, variation)
    # Greys have no hue to keep; adding saturation would tint them red
    if s == 0:
        new_s = 0
    return hsl_to_hex(h, new_s, lightness)
