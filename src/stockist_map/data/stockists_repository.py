"""Stockist feed loader with database-first approach, falling back to a JSON file."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..config import settings
from ..db.supabase import get_supabase_client, stockists_table
from ..services.registry import StockistRegistry

logger = logging.getLogger(__name__)

FEED_COLUMNS = (
    "id,name,email,phone,address1,address2,city,province,postcode,"
    "country,tags,latitude,longitude,updated_at"
)


def _load_rows_from_database() -> list[dict[str, Any]] | None:
    """Active, located rows from Supabase. Returns None if the database is not available."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = (
            stockists_table(supabase)
            .select(FEED_COLUMNS)
            .eq("is_active", True)
            .not_.is_("latitude", "null")
            .not_.is_("longitude", "null")
            .execute()
        )
    except Exception as e:
        logger.warning(f"Stockist query failed, falling back to file: {e}")
        return None
    return list(response.data or [])


def _load_rows_from_file(source: Optional[Path] = None) -> list[dict[str, Any]]:
    """Load stockist rows from the JSON feed file (same shape as the API feed)."""
    feed_path = source or settings.stockists_file
    if not feed_path.exists():
        raise FileNotFoundError(f"Stockist feed not found: {feed_path}")

    with feed_path.open(mode="r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, list):
        raise ValueError(f"Stockist feed '{feed_path}' must contain a JSON array.")
    return [
        row
        for row in data
        if isinstance(row, dict)
        and row.get("is_active", True)
        and row.get("latitude") is not None
        and row.get("longitude") is not None
    ]


def load_stockist_rows(source: Optional[Path] = None) -> list[dict[str, Any]]:
    """Get the stockist feed from the database first, the JSON file otherwise."""
    rows = _load_rows_from_database() if source is None else None
    if rows is not None:
        return rows
    return _load_rows_from_file(source)


@functools.lru_cache(maxsize=1)
def load_registry() -> StockistRegistry:
    """Cached registry of located stockists. Cleared after sync jobs change the table."""
    return StockistRegistry.from_rows(load_stockist_rows())


def clear_registry_cache() -> None:
    load_registry.cache_clear()
