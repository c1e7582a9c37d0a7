"""Shopify and geocoding sync endpoints."""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Body, Header, HTTPException, Query, status

from ...config import settings
from ...data.stockists_repository import clear_registry_cache
from ...db.supabase import get_supabase_client
from ...services.geocoding import NominatimGeocoder
from ...services.sync import (
    ShopifyAPIError,
    ShopifyCustomerClient,
    apply_customer_update,
    backfill_customers,
    deactivate_customer,
    geocode_pending,
)

router = APIRouter(prefix="/sync", tags=["sync"])

logger = logging.getLogger(__name__)


def _require_token(token: str | None) -> None:
    expected = settings.backfill_token
    if not expected or not token or not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")


def _require_supabase():
    supabase = get_supabase_client()
    if not supabase:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Supabase not configured. Set STOCKIST_SUPABASE_URL and STOCKIST_SUPABASE_KEY environment variables.",
        )
    return supabase


@router.post("/backfill", status_code=status.HTTP_200_OK)
async def backfill(token: str | None = Query(default=None)) -> dict:
    """Import every Shopify customer into the stockist table."""
    _require_token(token)
    supabase = _require_supabase()
    try:
        shopify = ShopifyCustomerClient()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    try:
        async with shopify, NominatimGeocoder() as geocoder:
            imported = await backfill_customers(shopify, geocoder, supabase)
    except ShopifyAPIError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    finally:
        clear_registry_cache()
    return {"imported": imported}


@router.post("/geocode-pending", status_code=status.HTTP_200_OK)
async def geocode_pending_stockists(token: str | None = Query(default=None)) -> dict:
    """Geocode one batch of active stockists that have no coordinates yet."""
    _require_token(token)
    supabase = _require_supabase()
    async with NominatimGeocoder() as geocoder:
        updated = await geocode_pending(geocoder, supabase)
    clear_registry_cache()
    return {"status": "done", "geocoded": updated}


@router.post("/shopify/customers", status_code=status.HTTP_200_OK)
def shopify_customer_event(
    payload: dict = Body(...),
    token: str | None = Query(default=None),
    topic: str = Header(default="", alias="X-Shopify-Topic"),
) -> dict:
    """Apply a customers/create, customers/update or customers/delete event."""
    _require_token(token)
    supabase = _require_supabase()
    if "id" not in payload:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Customer payload has no id.")

    if topic == "customers/delete":
        deactivate_customer(payload["id"], supabase)
        clear_registry_cache()
        return {"status": "ok", "action": "deactivated"}

    row = apply_customer_update(payload, supabase)
    clear_registry_cache()
    logger.info(f"Stockist {row['id']} synced from {topic or 'customer event'}")
    return {"status": "ok", "action": "upserted", "regeocode": "latitude" in row}
