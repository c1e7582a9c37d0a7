"""Database clients and utilities."""

from .supabase import get_supabase_client, stockists_table

__all__ = ["get_supabase_client", "stockists_table"]
