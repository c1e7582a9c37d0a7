"""Resolve typed postcodes and device positions into coordinates.

Every public coroutine returns a :class:`LocationQuery`; geocoder, frame proxy
and geolocation failures are converted to an unresolved query here and never
reach the filter engine.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ...config import settings
from ...models.domain import Coordinate, LocationQuery

logger = logging.getLogger(__name__)


class LocationUnavailableError(Exception):
    """Raised by position providers; ``reason`` is denied, timeout, unavailable or unsupported."""

    def __init__(self, reason: str, message: str | None = None) -> None:
        super().__init__(message or f"Location unavailable ({reason})")
        self.reason = reason


@dataclass(frozen=True, slots=True)
class PositionOptions:
    timeout_seconds: float
    maximum_age_seconds: float = 0.0
    high_accuracy: bool = True


class PostcodeGeocoder(Protocol):
    def postcode_query(self, postcode: str) -> str: ...

    async def geocode(self, query: str) -> Coordinate | None: ...


class DeviceGeolocationProvider(Protocol):
    async def current_position(self, options: PositionOptions) -> Coordinate: ...


class FrameGeolocationProxy(Protocol):
    """Request/response channel to a hosting frame that may read the device position."""

    def is_embedded(self) -> bool: ...

    async def request_position(self) -> Coordinate: ...


class FixedPositionProvider:
    """Reports a position measured elsewhere, e.g. posted by the browser."""

    def __init__(self, coordinate: Coordinate | None, *, reason: str = "unavailable") -> None:
        self._coordinate = coordinate
        self._reason = reason

    async def current_position(self, options: PositionOptions) -> Coordinate:
        if self._coordinate is None:
            raise LocationUnavailableError(self._reason)
        return self._coordinate


class UnsupportedPositionProvider:
    async def current_position(self, options: PositionOptions) -> Coordinate:
        raise LocationUnavailableError("unsupported", "Geolocation is not supported in this context.")


class LocationResolver:
    """Fallback chain: geocoder for postcodes; frame proxy, then device, for "use my location"."""

    def __init__(
        self,
        geocoder: PostcodeGeocoder,
        device: DeviceGeolocationProvider | None = None,
        frame_proxy: FrameGeolocationProxy | None = None,
        *,
        geolocation_timeout: float | None = None,
        frame_proxy_timeout: float | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.device = device
        self.frame_proxy = frame_proxy
        self.geolocation_timeout = (
            geolocation_timeout if geolocation_timeout is not None else settings.geolocation_timeout_seconds
        )
        self.frame_proxy_timeout = (
            frame_proxy_timeout if frame_proxy_timeout is not None else settings.frame_proxy_timeout_seconds
        )

    async def resolve_postcode(self, postcode: str) -> LocationQuery:
        postcode = (postcode or "").strip()
        if not postcode:
            return LocationQuery.unresolved("empty postcode")
        query = self.geocoder.postcode_query(postcode)
        try:
            coordinate = await self.geocoder.geocode(query)
        except Exception as exc:
            logger.warning(f"Postcode lookup for '{postcode}' failed: {exc}")
            return LocationQuery.unresolved("geocoder error")
        if coordinate is None:
            logger.debug(f"No geocoding result for postcode '{postcode}'")
            return LocationQuery.unresolved("no result")
        return LocationQuery.found(coordinate, "geocoder")

    async def locate_device(self) -> LocationQuery:
        proxied = await self._locate_via_frame()
        if proxied is not None:
            return proxied

        if self.device is None:
            return LocationQuery.unresolved("unsupported")
        options = PositionOptions(timeout_seconds=self.geolocation_timeout, maximum_age_seconds=0.0)
        try:
            coordinate = await asyncio.wait_for(self.device.current_position(options), timeout=self.geolocation_timeout)
        except asyncio.TimeoutError:
            logger.info(f"Device geolocation timed out after {self.geolocation_timeout:.1f}s")
            return LocationQuery.unresolved("timeout")
        except LocationUnavailableError as exc:
            logger.info(f"Device geolocation failed: {exc}")
            return LocationQuery.unresolved(exc.reason)
        except Exception as exc:
            logger.warning(f"Device geolocation failed unexpectedly: {exc}")
            return LocationQuery.unresolved("unavailable")
        return LocationQuery.found(coordinate, "device")

    async def _locate_via_frame(self) -> Optional[LocationQuery]:
        if self.frame_proxy is None or not self.frame_proxy.is_embedded():
            return None
        try:
            coordinate = await asyncio.wait_for(self.frame_proxy.request_position(), timeout=self.frame_proxy_timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Frame proxy gave no position within {self.frame_proxy_timeout:.1f}s, using device geolocation")
            return None
        except LocationUnavailableError as exc:
            logger.debug(f"Frame proxy failed ({exc.reason}), using device geolocation")
            return None
        except Exception as exc:
            logger.warning(f"Frame proxy request failed ({exc}), using device geolocation")
            return None
        return LocationQuery.found(coordinate, "frame_proxy")
