"""Supabase access for the stockist table."""

import logging
from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Cached client, or None when the STOCKIST_SUPABASE_* settings are missing.

    Creating the client opens no connection, so the first query may still fail.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("Supabase credentials not configured; stockists will be read from the JSON feed")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as exc:
        logger.error(f"Failed to create Supabase client for {settings.supabase_url}: {exc}")
        return None


def stockists_table(client: Any) -> Any:
    """Query builder for the configured stockist table."""
    return client.table(settings.stockists_table)
