"""Domain models for stockists, search criteria and resolved locations."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 position in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not is_valid_coordinate(self.latitude, self.longitude):
            raise ValueError(f"Invalid coordinate ({self.latitude}, {self.longitude})")

    def as_lng_lat(self) -> tuple[float, float]:
        return (self.longitude, self.latitude)


def is_valid_coordinate(latitude: float | None, longitude: float | None) -> bool:
    if latitude is None or longitude is None:
        return False
    if math.isnan(latitude) or math.isnan(longitude):
        return False
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


@dataclass(frozen=True, slots=True)
class Stockist:
    """Represents a retail location carrying the brand."""

    stockist_id: str
    name: str
    address1: Optional[str]
    address2: Optional[str]
    city: Optional[str]
    state: str
    postcode: str
    country: Optional[str]
    latitude: float
    longitude: float
    tags: tuple[str, ...] = ()
    email: Optional[str] = None
    phone: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Current search state; empty fields match everything."""

    name_pattern: str = ""
    postcode: str = ""
    state_code: str = ""

    @classmethod
    def from_input(
        cls,
        name: str | None = None,
        postcode: str | None = None,
        state: str | None = None,
    ) -> "FilterCriteria":
        return cls(
            name_pattern=(name or "").lower(),
            postcode=(postcode or "").strip(),
            state_code=(state or "").strip().upper(),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.name_pattern or self.postcode or self.state_code)


LocationSource = Literal["geocoder", "device", "frame_proxy"]


@dataclass(frozen=True, slots=True)
class LocationQuery:
    """Outcome of resolving a postcode or device position."""

    coordinate: Optional[Coordinate] = None
    source: Optional[LocationSource] = None
    reason: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.coordinate is not None

    @classmethod
    def found(cls, coordinate: Coordinate, source: LocationSource) -> "LocationQuery":
        return cls(coordinate=coordinate, source=source)

    @classmethod
    def unresolved(cls, reason: str) -> "LocationQuery":
        return cls(reason=reason)


FilterMode = Literal["direct", "radius_fallback", "no_results", "nearby"]


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Visible set produced by one filter or proximity run."""

    visible: tuple[Stockist, ...]
    mode: FilterMode
    origin: Optional[Coordinate] = None
    radius_km: Optional[float] = None
    criteria: FilterCriteria = field(default_factory=FilterCriteria)

    @property
    def visible_ids(self) -> tuple[str, ...]:
        return tuple(stockist.stockist_id for stockist in self.visible)

    def __len__(self) -> int:
        return len(self.visible)
