"""Two-pass stockist filtering and radius search."""

from __future__ import annotations

import logging
from typing import Protocol

from ...models.domain import Coordinate, FilterCriteria, FilterResult, LocationQuery, Stockist
from ..geospatial import haversine_km
from ..registry import StockistRegistry

logger = logging.getLogger(__name__)


class PostcodeResolver(Protocol):
    async def resolve_postcode(self, postcode: str) -> LocationQuery: ...


def matches(stockist: Stockist, criteria: FilterCriteria) -> bool:
    """All three predicates must hold; an empty criterion accepts every stockist."""

    matches_name = criteria.name_pattern.lower() in stockist.name.lower()
    matches_postcode = criteria.postcode in stockist.postcode
    matches_state = not criteria.state_code or stockist.state == criteria.state_code
    return matches_name and matches_postcode and matches_state


def match_stockists(registry: StockistRegistry, criteria: FilterCriteria) -> tuple[Stockist, ...]:
    return tuple(stockist for stockist in registry if matches(stockist, criteria))


def within_radius(registry: StockistRegistry, origin: Coordinate, radius_km: float) -> tuple[Stockist, ...]:
    """Stockists no further than ``radius_km`` from ``origin`` (boundary included), in registry order."""

    return tuple(
        stockist
        for stockist in registry
        if haversine_km(origin.latitude, origin.longitude, stockist.latitude, stockist.longitude) <= radius_km
    )


def nearby(registry: StockistRegistry, origin: Coordinate, radius_km: float) -> FilterResult:
    """Proximity search for "use my location"; text filters play no part."""

    return FilterResult(
        visible=within_radius(registry, origin, radius_km),
        mode="nearby",
        origin=origin,
        radius_km=radius_km,
    )


async def apply_filters(
    registry: StockistRegistry,
    criteria: FilterCriteria,
    resolver: PostcodeResolver,
    radius_km: float,
) -> FilterResult:
    """Direct match first; an unmatched postcode falls back to a radius search around it."""

    visible = match_stockists(registry, criteria)
    if visible or not criteria.postcode:
        return FilterResult(visible=visible, mode="direct", criteria=criteria)

    location = await resolver.resolve_postcode(criteria.postcode)
    if not location.resolved:
        logger.debug(f"Postcode '{criteria.postcode}' could not be resolved ({location.reason}); no results")
        return FilterResult(visible=(), mode="no_results", criteria=criteria)

    return FilterResult(
        visible=within_radius(registry, location.coordinate, radius_km),
        mode="radius_fallback",
        origin=location.coordinate,
        radius_km=radius_km,
        criteria=criteria,
    )
