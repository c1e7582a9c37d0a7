"""Request-scoped map sessions for the search endpoints."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..data.stockists_repository import load_registry
from ..models.domain import Coordinate, FilterCriteria
from ..schemas.stockists import NearbyRequest, SearchRequest
from .geocoding.nominatim import NominatimGeocoder
from .location.resolver import FixedPositionProvider, LocationResolver
from .presentation import PresentationState
from .registry import StockistRegistry
from .session import StockistMapSession
from .viewport import ProjectedMapSurface, ViewportController

logger = logging.getLogger(__name__)


def _coordinate_dict(coordinate: Coordinate | None) -> Optional[dict[str, float]]:
    if coordinate is None:
        return None
    return {"latitude": coordinate.latitude, "longitude": coordinate.longitude}


def session_payload(session: StockistMapSession, surface: ProjectedMapSurface) -> dict[str, Any]:
    """Flatten the session's presentation and recorded viewport commands for the API."""
    state: PresentationState = session.state
    result = session.result
    return {
        "mode": state.mode,
        "layout": state.layout,
        "total": state.total,
        "visible_ids": list(result.visible_ids),
        "entries": [
            {
                "stockist_id": entry.stockist_id,
                "name": entry.name,
                "address_line": entry.address_line,
                "locality_line": entry.locality_line,
                "country_line": entry.country_line,
            }
            for entry in state.entries
        ],
        "marker_visibility": state.marker_visibility,
        "expanded": state.expanded,
        "show_all": {"total": state.show_all.total, "label": state.show_all.label} if state.show_all else None,
        "user_location": _coordinate_dict(state.user_location),
        "origin": _coordinate_dict(result.origin),
        "radius_km": result.radius_km,
        "notice": state.notice,
        "location_action_enabled": session.location_action_enabled,
        "viewport": list(surface.commands),
        "zoom": surface.get_zoom(),
        "center": _coordinate_dict(surface.center),
    }


def _build_session(
    registry: StockistRegistry,
    geocoder: NominatimGeocoder,
    request: SearchRequest,
    device: FixedPositionProvider | None = None,
) -> tuple[StockistMapSession, ProjectedMapSurface]:
    surface = ProjectedMapSurface(request.viewport_width, request.viewport_height)
    resolver = LocationResolver(geocoder, device=device)
    viewport = ViewportController(surface, settle_ms=0)
    session = StockistMapSession(registry, resolver, viewport, width_px=request.viewport_width)
    return session, surface


async def _render_request(session: StockistMapSession, request: SearchRequest) -> None:
    criteria = FilterCriteria.from_input(request.name, request.postcode, request.state)
    if request.initial and criteria.is_empty:
        await session.initialise()
    else:
        await session.apply_filters(criteria)
    if request.expanded:
        session.show_all()


async def search_stockists(
    request: SearchRequest,
    *,
    registry: StockistRegistry | None = None,
    geocoder: NominatimGeocoder | None = None,
) -> dict[str, Any]:
    registry = registry if registry is not None else load_registry()
    async with geocoder or NominatimGeocoder() as active_geocoder:
        session, surface = _build_session(registry, active_geocoder, request)
        await _render_request(session, request)
    return session_payload(session, surface)


async def locate_stockists(
    request: NearbyRequest,
    *,
    registry: StockistRegistry | None = None,
    geocoder: NominatimGeocoder | None = None,
) -> dict[str, Any]:
    """Near-me search with a browser-supplied position; failures keep the posted filters."""
    registry = registry if registry is not None else load_registry()
    position = None
    if request.latitude is not None and request.longitude is not None:
        position = Coordinate(request.latitude, request.longitude)
    device = FixedPositionProvider(position, reason=request.error or "unavailable")
    async with geocoder or NominatimGeocoder() as active_geocoder:
        session, surface = _build_session(registry, active_geocoder, request, device=device)
        await _render_request(session, request)
        surface.commands.clear()
        state = await session.use_my_location()
    if state is None or state.notice:
        logger.info(f"Near-me search without a position ({request.error or 'no coordinates'})")
    elif request.expanded:
        session.show_all()
    return session_payload(session, surface)
