"""Frame the map around a set of coordinates with a minimum zoom floor."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from ..config import settings
from ..models.domain import Coordinate, Stockist
from .geospatial import bounding_box

logger = logging.getLogger(__name__)

TILE_SIZE_PX = 512
MAX_MERCATOR_LATITUDE = 85.051129
DEFAULT_MAX_ZOOM = 22.0


@dataclass(frozen=True, slots=True)
class Bounds:
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def around(cls, coords: Sequence[Coordinate]) -> "Bounds":
        return cls(*bounding_box(coords))

    @property
    def is_degenerate(self) -> bool:
        return self.south == self.north and self.west == self.east

    def as_lng_lat_pairs(self) -> list[list[float]]:
        return [[self.west, self.south], [self.east, self.north]]


@dataclass(frozen=True, slots=True)
class FrameCommand:
    """What the map is asked to do for one framing request."""

    bounds: Bounds
    padding: int
    duration_ms: int
    min_zoom: float
    max_zoom: Optional[float] = None


class MapSurface(Protocol):
    """Rendering sink; calls return immediately and animate asynchronously."""

    def fit_bounds(self, bounds: Bounds, *, padding: int, duration_ms: int, max_zoom: Optional[float] = None) -> None: ...

    def ease_to(self, *, zoom: Optional[float] = None, center: Optional[Coordinate] = None, duration_ms: int) -> None: ...

    def get_zoom(self) -> float: ...


def plan_frame(
    coords: Sequence[Coordinate],
    *,
    padding: int | None = None,
    duration_ms: int | None = None,
    min_zoom: float | None = None,
    max_zoom: float | None = None,
) -> FrameCommand | None:
    if not coords:
        return None
    return FrameCommand(
        bounds=Bounds.around(coords),
        padding=settings.fit_padding_px if padding is None else padding,
        duration_ms=settings.fit_duration_ms if duration_ms is None else duration_ms,
        min_zoom=settings.min_fit_zoom if min_zoom is None else min_zoom,
        max_zoom=max_zoom,
    )


class ViewportController:
    """Owns every viewport change made on behalf of the filter results."""

    def __init__(
        self,
        surface: MapSurface,
        *,
        min_zoom: float | None = None,
        padding: int | None = None,
        fit_duration_ms: int | None = None,
        ease_duration_ms: int | None = None,
        settle_ms: int | None = None,
        focus_zoom: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.surface = surface
        self.min_zoom = settings.min_fit_zoom if min_zoom is None else min_zoom
        self.padding = settings.fit_padding_px if padding is None else padding
        self.fit_duration_ms = settings.fit_duration_ms if fit_duration_ms is None else fit_duration_ms
        self.ease_duration_ms = settings.ease_duration_ms if ease_duration_ms is None else ease_duration_ms
        self.settle_ms = settings.fit_settle_ms if settle_ms is None else settle_ms
        self.focus_zoom = settings.focus_zoom if focus_zoom is None else focus_zoom
        self._sleep = sleep

    async def frame(
        self,
        coords: Sequence[Coordinate],
        *,
        max_zoom: float | None = None,
        is_current: Callable[[], bool] | None = None,
    ) -> FrameCommand | None:
        """Fit all coordinates, then ease back in if the fit settled below the zoom floor.

        ``is_current`` is checked after the settle delay; a superseded frame
        skips the floor correction so it cannot disturb a newer fit.
        """
        command = plan_frame(
            coords,
            padding=self.padding,
            duration_ms=self.fit_duration_ms,
            min_zoom=self.min_zoom,
            max_zoom=max_zoom,
        )
        if command is None:
            return None
        self.surface.fit_bounds(
            command.bounds,
            padding=command.padding,
            duration_ms=command.duration_ms,
            max_zoom=command.max_zoom,
        )
        await self._sleep(self.settle_ms / 1000.0)
        if is_current is not None and not is_current():
            return command
        zoom = self.surface.get_zoom()
        if zoom < command.min_zoom:
            logger.debug(f"Fit settled at zoom {zoom:.2f}, easing to floor {command.min_zoom:.2f}")
            self.surface.ease_to(zoom=command.min_zoom, duration_ms=self.ease_duration_ms)
        return command

    def focus(self, stockist: Stockist) -> None:
        self.surface.ease_to(zoom=self.focus_zoom, center=stockist.coordinate, duration_ms=self.ease_duration_ms)


def _mercator_x(longitude: float) -> float:
    return (longitude + 180.0) / 360.0


def _mercator_y(latitude: float) -> float:
    lat = max(-MAX_MERCATOR_LATITUDE, min(MAX_MERCATOR_LATITUDE, latitude))
    phi = math.radians(lat)
    return (1.0 - math.log(math.tan(phi) + 1.0 / math.cos(phi)) / math.pi) / 2.0


def _latitude_from_mercator_y(y: float) -> float:
    return math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y))))


def fit_zoom(bounds: Bounds, width_px: int, height_px: int, padding: int, max_zoom: float = DEFAULT_MAX_ZOOM) -> float:
    """Zoom at which ``bounds`` exactly fills the padded viewport (512 px Web Mercator tiles)."""

    usable_width = max(width_px - 2 * padding, 1)
    usable_height = max(height_px - 2 * padding, 1)
    span_x = abs(_mercator_x(bounds.east) - _mercator_x(bounds.west))
    span_y = abs(_mercator_y(bounds.south) - _mercator_y(bounds.north))
    candidates = []
    if span_x > 0:
        candidates.append(math.log2(usable_width / (TILE_SIZE_PX * span_x)))
    if span_y > 0:
        candidates.append(math.log2(usable_height / (TILE_SIZE_PX * span_y)))
    zoom = min(candidates) if candidates else max_zoom
    return max(0.0, min(zoom, max_zoom))


class ProjectedMapSurface:
    """Headless map surface that records commands for the browser map.

    Fits are resolved immediately to the zoom the browser would settle at, so
    the zoom floor can be decided server-side.
    """

    def __init__(
        self,
        width_px: int,
        height_px: int,
        *,
        center: Coordinate | None = None,
        zoom: float | None = None,
        max_zoom: float = DEFAULT_MAX_ZOOM,
    ) -> None:
        self.width_px = width_px
        self.height_px = height_px
        self.center = center or Coordinate(*settings.default_center)
        self.zoom = settings.default_zoom if zoom is None else zoom
        self.max_zoom = max_zoom
        self.commands: list[dict[str, Any]] = []

    def fit_bounds(self, bounds: Bounds, *, padding: int, duration_ms: int, max_zoom: Optional[float] = None) -> None:
        cap = self.max_zoom if max_zoom is None else min(max_zoom, self.max_zoom)
        self.zoom = fit_zoom(bounds, self.width_px, self.height_px, padding, cap)
        mid_y = (_mercator_y(bounds.south) + _mercator_y(bounds.north)) / 2.0
        self.center = Coordinate(_latitude_from_mercator_y(mid_y), (bounds.west + bounds.east) / 2.0)
        command: dict[str, Any] = {
            "type": "fit_bounds",
            "bounds": bounds.as_lng_lat_pairs(),
            "padding": padding,
            "duration": duration_ms,
        }
        if max_zoom is not None:
            command["maxZoom"] = max_zoom
        self.commands.append(command)

    def ease_to(self, *, zoom: Optional[float] = None, center: Optional[Coordinate] = None, duration_ms: int) -> None:
        command: dict[str, Any] = {"type": "ease_to", "duration": duration_ms}
        if zoom is not None:
            self.zoom = zoom
            command["zoom"] = zoom
        if center is not None:
            self.center = center
            command["center"] = list(center.as_lng_lat())
        self.commands.append(command)

    def get_zoom(self) -> float:
        return self.zoom
