"""In-memory collection of the located stockists for one map session."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence

from ..models.domain import Coordinate, Stockist, is_valid_coordinate
from .geospatial import normalize_region_code

logger = logging.getLogger(__name__)


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(str(value).replace(",", "")) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_tags(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return tuple(tag.strip() for tag in (str(item) for item in items) if tag.strip())


def stockist_from_row(row: Mapping[str, Any]) -> Optional[Stockist]:
    """Build a stockist from a feed row, or None when it has no usable position."""

    lat = _coerce_float(row.get("latitude"))
    lng = _coerce_float(row.get("longitude"))
    if not is_valid_coordinate(lat, lng):
        return None
    stockist_id = _clean(row.get("id"))
    if stockist_id is None:
        return None
    return Stockist(
        stockist_id=stockist_id,
        name=_clean(row.get("name")) or "",
        address1=_clean(row.get("address1")),
        address2=_clean(row.get("address2")),
        city=_clean(row.get("city")),
        state=normalize_region_code(row.get("province") or row.get("state")),
        postcode=_clean(row.get("postcode")) or "",
        country=_clean(row.get("country")),
        latitude=lat,
        longitude=lng,
        tags=_parse_tags(row.get("tags")),
        email=_clean(row.get("email")),
        phone=_clean(row.get("phone")),
        updated_at=_clean(row.get("updated_at")),
    )


class StockistRegistry:
    """Ordered, read-only set of located stockists; insertion order is display order."""

    def __init__(self, stockists: Iterable[Stockist] = (), states: Iterable[str] | None = None) -> None:
        self._stockists: list[Stockist] = []
        self._by_id: dict[str, Stockist] = {}
        for stockist in stockists:
            if stockist.stockist_id in self._by_id:
                logger.debug(f"Ignoring duplicate stockist id {stockist.stockist_id}")
                continue
            self._by_id[stockist.stockist_id] = stockist
            self._stockists.append(stockist)
        state_values = states if states is not None else (stockist.state for stockist in self._stockists)
        self._states = tuple(sorted({state for state in state_values if state}))

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "StockistRegistry":
        stockists: list[Stockist] = []
        states: set[str] = set()
        dropped = 0
        for row in rows:
            state = normalize_region_code(row.get("province") or row.get("state"))
            if state:
                states.add(state)
            stockist = stockist_from_row(row)
            if stockist is None:
                dropped += 1
                continue
            stockists.append(stockist)
        if dropped:
            logger.debug(f"Dropped {dropped} stockist rows without valid coordinates")
        return cls(stockists, states=states)

    @property
    def stockists(self) -> tuple[Stockist, ...]:
        return tuple(self._stockists)

    def __len__(self) -> int:
        return len(self._stockists)

    def __iter__(self) -> Iterator[Stockist]:
        return iter(self._stockists)

    def __contains__(self, stockist_id: object) -> bool:
        return stockist_id in self._by_id

    def get(self, stockist_id: str) -> Optional[Stockist]:
        return self._by_id.get(str(stockist_id))

    def states(self) -> tuple[str, ...]:
        """Sorted region codes for the state selector."""
        return self._states

    def coordinates(self, stockists: Sequence[Stockist] | None = None) -> list[Coordinate]:
        source = self._stockists if stockists is None else stockists
        return [stockist.coordinate for stockist in source]
