"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and stockist table status."""
    from ...db.supabase import get_supabase_client, stockists_table

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set STOCKIST_SUPABASE_URL and STOCKIST_SUPABASE_KEY environment variables.",
            "stockists_count": 0,
        }

    try:
        response = (
            stockists_table(supabase)
            .select("id", count="exact")
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        count = response.count or 0
        return {
            "configured": True,
            "connected": True,
            "stockists_count": count,
            "message": f"Database connected. Found {count} active stockists.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
