"""Shopify and geocoding sync jobs."""

from .geocode_pending import geocode_pending
from .shopify import (
    ShopifyAPIError,
    ShopifyCustomerClient,
    apply_customer_update,
    backfill_customers,
    customer_to_stockist,
    deactivate_customer,
)

__all__ = [
    "ShopifyAPIError",
    "ShopifyCustomerClient",
    "apply_customer_update",
    "backfill_customers",
    "customer_to_stockist",
    "deactivate_customer",
    "geocode_pending",
]
