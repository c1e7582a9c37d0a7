"""Shopify customer → stockist synchronisation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional

import httpx

from ...config import settings
from ...db.supabase import stockists_table
from ...models.domain import Coordinate
from ..geocoding.nominatim import NominatimGeocoder

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("address1", "address2", "city", "province", "postcode", "country")


class ShopifyAPIError(RuntimeError):
    """Raised when the Shopify Admin API answers with a non-success status."""


def customer_name(customer: Mapping[str, Any]) -> str:
    """Company name first, then the person's name, then "Unnamed"."""
    company = (customer.get("company") or "").strip()
    if company:
        return company
    parts = [part for part in (customer.get("first_name"), customer.get("last_name")) if part]
    return " ".join(parts) if parts else "Unnamed"


def normalize_customer_id(value: Any) -> int:
    return int(value)


def customer_address(customer: Mapping[str, Any], default_country: str | None = None) -> dict[str, Optional[str]]:
    address = customer.get("default_address") or {}
    return {
        "address1": address.get("address1") or None,
        "address2": address.get("address2") or None,
        "city": address.get("city") or None,
        "province": address.get("province") or None,
        "postcode": address.get("zip") or None,
        "country": address.get("country") or default_country or settings.default_country,
    }


def is_hidden(tags: str, hide_tag: str | None = None) -> bool:
    return (hide_tag or settings.hide_tag).lower() in tags.lower()


def customer_to_stockist(customer: Mapping[str, Any]) -> dict[str, Any]:
    """Map a Shopify customer payload onto a stockist table row (without coordinates)."""
    tags = str(customer.get("tags") or "")
    return {
        "id": normalize_customer_id(customer["id"]),
        "name": customer_name(customer),
        "email": customer.get("email"),
        "phone": customer.get("phone"),
        **customer_address(customer),
        "tags": tags,
        "is_active": not is_hidden(tags),
    }


def address_changed(existing: Mapping[str, Any] | None, incoming: Mapping[str, Any]) -> bool:
    if not existing:
        return True
    return any(existing.get(key) != incoming.get(key) for key in ADDRESS_FIELDS)


async def geocode_address(geocoder: NominatimGeocoder, row: Mapping[str, Any]) -> Coordinate | None:
    """Full address first, then the postcode on its own."""
    full = geocoder.address_query(
        [
            row.get("address1"),
            row.get("address2"),
            row.get("city"),
            row.get("province"),
            row.get("postcode"),
            row.get("country") or settings.default_country,
        ]
    )
    coordinate = await geocoder.geocode(full) if full else None
    if coordinate is None and row.get("postcode"):
        coordinate = await geocoder.geocode(geocoder.postcode_query(str(row["postcode"])))
    return coordinate


class ShopifyCustomerClient:
    """Pages through the Admin API customers endpoint using ``since_id``."""

    def __init__(
        self,
        shop: str | None = None,
        token: str | None = None,
        *,
        api_version: str | None = None,
        page_size: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.shop = shop or settings.shopify_shop
        self.token = token or settings.shopify_admin_token
        if not self.shop or not self.token:
            raise ValueError("Shopify shop and admin token must be configured.")
        self.api_version = api_version or settings.shopify_api_version
        self.page_size = page_size or settings.shopify_page_size
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0))
        self._owns_client = client is None

    async def __aenter__(self) -> "ShopifyCustomerClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def customers_url(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}/customers.json"

    async def fetch_page(self, since_id: int | None = None) -> list[dict[str, Any]]:
        params = {"limit": str(self.page_size)}
        if since_id:
            params["since_id"] = str(since_id)
        response = await self._client.get(
            self.customers_url,
            params=params,
            headers={"X-Shopify-Access-Token": self.token, "Content-Type": "application/json"},
        )
        if response.status_code >= 400:
            raise ShopifyAPIError(f"Shopify {response.status_code}: {response.text}")
        return list(response.json().get("customers") or [])

    async def iter_customers(self) -> AsyncIterator[dict[str, Any]]:
        since_id: int | None = None
        while True:
            customers = await self.fetch_page(since_id)
            if not customers:
                return
            for customer in customers:
                yield customer
            since_id = normalize_customer_id(customers[-1]["id"])


async def backfill_customers(
    shopify: ShopifyCustomerClient,
    geocoder: NominatimGeocoder,
    supabase: Any,
    *,
    delay_seconds: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> int:
    """Upsert every Shopify customer as a stockist, geocoding the visible ones."""
    delay = settings.sync_delay_seconds if delay_seconds is None else delay_seconds
    count = 0
    async for customer in shopify.iter_customers():
        row = customer_to_stockist(customer)
        if row["is_active"]:
            coordinate = await geocode_address(geocoder, row)
            if coordinate is not None:
                row["latitude"] = coordinate.latitude
                row["longitude"] = coordinate.longitude
            else:
                logger.info(f"No coordinates found for stockist {row['id']} ({row['name']})")
        stockists_table(supabase).upsert(row).execute()
        count += 1
        if count % 50 == 0:
            logger.info(f"Backfill progress: {count} customers imported")
        await sleep(delay)
    logger.info(f"Backfill complete: {count} customers imported")
    return count


def apply_customer_update(customer: Mapping[str, Any], supabase: Any) -> dict[str, Any]:
    """Upsert a created/updated customer; a changed address clears coordinates for re-geocoding."""
    row = customer_to_stockist(customer)
    response = (
        stockists_table(supabase)
        .select(",".join(ADDRESS_FIELDS))
        .eq("id", row["id"])
        .maybe_single()
        .execute()
    )
    existing = response.data if response is not None else None
    if address_changed(existing, row):
        row["latitude"] = None
        row["longitude"] = None
    stockists_table(supabase).upsert(row).execute()
    return row


def deactivate_customer(customer_id: Any, supabase: Any) -> None:
    stockists_table(supabase).update({"is_active": False}).eq(
        "id", normalize_customer_id(customer_id)
    ).execute()
