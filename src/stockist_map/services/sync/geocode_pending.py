"""Geocode active stockists that are still missing coordinates."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from ...config import settings
from ...db.supabase import stockists_table
from ..geocoding.nominatim import NominatimGeocoder
from .shopify import geocode_address

logger = logging.getLogger(__name__)


async def geocode_pending(
    geocoder: NominatimGeocoder,
    supabase: Any,
    *,
    batch_size: int | None = None,
    delay_seconds: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> int:
    """Geocode one batch of pending rows at roughly one request per second.

    Returns the number of rows that received coordinates.
    """
    limit = settings.geocode_pending_batch_size if batch_size is None else batch_size
    delay = settings.geocode_pending_delay_seconds if delay_seconds is None else delay_seconds

    response = (
        stockists_table(supabase)
        .select("id,address1,address2,city,province,postcode,country")
        .is_("latitude", "null")
        .eq("is_active", True)
        .limit(limit)
        .execute()
    )
    rows = response.data or []
    logger.info(f"Geocoding {len(rows)} pending stockists")

    updated = 0
    for row in rows:
        coordinate = await geocode_address(geocoder, row)
        if coordinate is not None:
            stockists_table(supabase).update(
                {"latitude": coordinate.latitude, "longitude": coordinate.longitude}
            ).eq("id", row["id"]).execute()
            updated += 1
        else:
            logger.debug(f"Stockist {row['id']} is still without coordinates")
        await sleep(delay)
    return updated
