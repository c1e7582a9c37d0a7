"""Geospatial and display-string helper functions."""

from __future__ import annotations

import html
import math
import re
from typing import Sequence

from shapely.geometry import MultiPoint

from ..models.domain import Coordinate, is_valid_coordinate

EARTH_RADIUS_KM = 6371.0

_WORD_PATTERN = re.compile(r"\b\w+")

__all__ = [
    "EARTH_RADIUS_KM",
    "bounding_box",
    "escape_for_display",
    "haversine_km",
    "is_valid_coordinate",
    "normalize_region_code",
    "title_case",
]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def normalize_region_code(value: str | None) -> str:
    """Return the trimmed, upper-cased region code ("" for missing input)."""

    return (value or "").strip().upper()


def title_case(value: str | None) -> str:
    """Lower-case the text, then capitalise the first letter of every word."""

    lowered = (value or "").lower()
    return _WORD_PATTERN.sub(lambda match: match.group(0)[0].upper() + match.group(0)[1:], lowered)


def escape_for_display(value: object | None) -> str:
    """HTML-escape free text coming from the stockist feed."""

    if value is None:
        return ""
    return html.escape(str(value), quote=True).replace("&#x27;", "&#39;")


def bounding_box(coords: Sequence[Coordinate]) -> tuple[float, float, float, float]:
    """Return the minimal (south, west, north, east) box containing all coordinates."""

    if not coords:
        raise ValueError("At least one coordinate is required for a bounding box.")
    west, south, east, north = MultiPoint([coord.as_lng_lat() for coord in coords]).bounds
    return (south, west, north, east)
