"""Map session: wires filtering, location, viewport and presentation together."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import settings
from ..models.domain import Coordinate, FilterCriteria, FilterResult
from .filtering import engine
from .location.resolver import LocationResolver
from .presentation import Layout, PresentationState, PresentationSync
from .registry import StockistRegistry
from .viewport import ViewportController

logger = logging.getLogger(__name__)

LOCATION_FAILURE_NOTICE = "Could not access your location."


class StockistMapSession:
    """State for one visitor's map: the registry plus whatever they are searching for.

    Each operation takes a generation number when it starts. Results that
    arrive after a newer operation has started are discarded, so a slow
    postcode lookup can never overwrite a more recent search.
    """

    def __init__(
        self,
        registry: StockistRegistry,
        resolver: LocationResolver,
        viewport: ViewportController,
        presentation: PresentationSync | None = None,
        *,
        width_px: int = 1024,
        postcode_radius_km: float | None = None,
        near_me_radius_km: float | None = None,
        initial_max_zoom: float | None = None,
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.viewport = viewport
        self.presentation = presentation or PresentationSync()
        self.postcode_radius_km = settings.postcode_radius_km if postcode_radius_km is None else postcode_radius_km
        self.near_me_radius_km = settings.near_me_radius_km if near_me_radius_km is None else near_me_radius_km
        self.initial_max_zoom = settings.initial_max_zoom if initial_max_zoom is None else initial_max_zoom
        self.layout: Layout = self.presentation.classify(width_px)
        self.criteria = FilterCriteria()
        self.result: Optional[FilterResult] = None
        self.location_action_enabled = True
        self._nearby_origin: Optional[Coordinate] = None
        self._generation = 0

    @property
    def state(self) -> Optional[PresentationState]:
        return self.presentation.state

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def initialise(self) -> PresentationState:
        """Show every stockist and fit them all, capped at the initial max zoom."""
        generation = self._next_generation()
        self.criteria = FilterCriteria()
        self._nearby_origin = None
        result = FilterResult(visible=self.registry.stockists, mode="direct", criteria=self.criteria)
        return await self._show(result, generation, max_zoom=self.initial_max_zoom)

    async def apply_filters(self, criteria: FilterCriteria) -> Optional[PresentationState]:
        """Recompute the visible set; returns None when a newer operation superseded this one."""
        generation = self._next_generation()
        self.criteria = criteria
        self._nearby_origin = None
        result = await engine.apply_filters(self.registry, criteria, self.resolver, self.postcode_radius_km)
        if not self._is_current(generation):
            logger.debug(f"Discarding superseded filter result (generation {generation}, current {self._generation})")
            return None
        return await self._show(result, generation)

    async def clear_filters(self) -> Optional[PresentationState]:
        return await self.apply_filters(FilterCriteria())

    async def use_my_location(self) -> Optional[PresentationState]:
        """Show stockists near the visitor, replacing any text filters.

        On failure the visible state is left as it was and a notice is shown.
        The action is enabled again whatever the outcome.
        """
        if not self.location_action_enabled:
            return None
        self.location_action_enabled = False
        started_at = self._generation
        try:
            location = await self.resolver.locate_device()
            if not location.resolved:
                logger.info(f"Use my location failed: {location.reason}")
                return self.presentation.notify(LOCATION_FAILURE_NOTICE)
            if self._generation != started_at:
                logger.debug("Discarding device location; a newer search started while waiting")
                return None
            generation = self._next_generation()
            self.criteria = FilterCriteria()
            self._nearby_origin = location.coordinate
            result = engine.nearby(self.registry, location.coordinate, self.near_me_radius_km)
            return await self._show(result, generation, user_location=location.coordinate)
        finally:
            self.location_action_enabled = True

    async def resize(self, width_px: int) -> Optional[PresentationState]:
        """Re-classify the layout and re-run the current search (not just a re-render)."""
        self.layout = self.presentation.classify(width_px)
        if self._nearby_origin is not None:
            generation = self._next_generation()
            origin = self._nearby_origin
            result = engine.nearby(self.registry, origin, self.near_me_radius_km)
            return await self._show(result, generation, user_location=origin)
        return await self.apply_filters(self.criteria)

    def show_all(self) -> Optional[PresentationState]:
        return self.presentation.expand()

    def select(self, stockist_id: str) -> bool:
        """Centre the map on one stockist, as when its sidebar entry is clicked."""
        stockist = self.registry.get(stockist_id)
        if stockist is None:
            return False
        self.viewport.focus(stockist)
        return True

    async def _show(
        self,
        result: FilterResult,
        generation: int,
        *,
        user_location: Coordinate | None = None,
        max_zoom: float | None = None,
    ) -> PresentationState:
        self.result = result
        state = self.presentation.render(self.registry, result, self.layout, user_location=user_location)
        coords = self.registry.coordinates(result.visible)
        if user_location is not None:
            coords = [user_location, *coords]
        await self.viewport.frame(coords, max_zoom=max_zoom, is_current=lambda: self._is_current(generation))
        return state
