"""HTTP client for the Nominatim (OpenStreetMap) search service."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

import httpx

from ...config import settings
from ...models.domain import Coordinate

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    """Raised when the geocoding service returns an unusable response."""


class NominatimGeocoder:
    """Resolve free-text addresses to a single coordinate, scoped to one country.

    Every failure (network error, non-success status, empty or malformed
    result) is reported as ``None`` from :meth:`geocode`; callers never see
    the underlying exception.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        user_agent: str | None = None,
        country_code: str | None = None,
        country_name: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.geocoder_base_url).rstrip("/")
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.country_code = country_code or settings.geocoder_country_code
        self.country_name = country_name or settings.geocoder_country_name
        self.timeout = timeout if timeout is not None else settings.geocoder_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.geocoder_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.geocoder_backoff_seconds
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "NominatimGeocoder":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=5.0),
                headers={"User-Agent": self.user_agent},
            )
        return self._client

    def postcode_query(self, postcode: str) -> str:
        return f"{self.country_name} {postcode.strip()}"

    @staticmethod
    def address_query(parts: Iterable[str | None]) -> str:
        """Join the non-empty address parts into one search string."""
        return ", ".join(str(part).strip() for part in parts if part and str(part).strip())

    async def geocode(self, query: str) -> Coordinate | None:
        """Return the best match for ``query`` or None when nothing usable comes back."""
        if not query or not query.strip():
            return None
        try:
            payload = await self._search(query)
            return self._first_coordinate(payload)
        except (httpx.HTTPError, GeocodingError) as exc:
            logger.warning(f"Geocoding failed for '{query}': {exc}")
            return None

    async def _search(self, query: str) -> list:
        params = {
            "q": query,
            "format": "json",
            "limit": "1",
            "countrycodes": self.country_code,
        }
        url = f"{self.base_url}/search"
        client = self._get_client()
        attempt = 0
        while True:
            try:
                response = await client.get(url, params=params, headers={"User-Agent": self.user_agent})
                response.raise_for_status()
                try:
                    data = response.json()
                except ValueError as exc:
                    raise GeocodingError("Geocoder returned a non-JSON body.") from exc
                if not isinstance(data, list):
                    raise GeocodingError("Geocoder response is not a result list.")
                return data
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                attempt += 1
                if attempt > self.max_retries:
                    raise
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(f"Geocoder network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {exc}")
                await asyncio.sleep(wait_time)

    @staticmethod
    def _first_coordinate(payload: list) -> Coordinate | None:
        if not payload:
            return None
        first = payload[0]
        try:
            return Coordinate(float(first["lat"]), float(first["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError(f"Geocoder result has no usable coordinate: {exc}") from exc
