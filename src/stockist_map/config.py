"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="STOCKIST_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Stockist Map API"
    api_prefix: str = "/api"
    stockists_file: Path = Field(
        default=Path("data/stockists.json"),
        description="Stockist feed used when Supabase is not configured.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "https://cleaneatsaustralia.com.au",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    stockists_table: str = "stockists"

    # Geocoding
    geocoder_base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL of the Nominatim search service.",
    )
    geocoder_user_agent: str = Field(
        default="CleanEats-StockistMap/1.0 (contact@cleaneatsaustralia.com.au)",
        description="Identifying User-Agent required by the OSM usage policy.",
    )
    geocoder_country_code: str = "au"
    geocoder_country_name: str = "Australia"
    geocoder_timeout_seconds: float = Field(default=10.0, gt=0.0)
    geocoder_max_retries: int = Field(default=0, ge=0)
    geocoder_backoff_seconds: float = Field(default=1.0, ge=0.0)

    # Search radii
    postcode_radius_km: float = Field(
        default=5.0,
        ge=0.0,
        description="Fallback radius when a postcode search has no direct matches.",
    )
    near_me_radius_km: float = Field(default=10.0, ge=0.0, description="Radius for 'use my location'.")

    # Device location
    geolocation_timeout_seconds: float = Field(default=8.0, gt=0.0)
    frame_proxy_timeout_seconds: float = Field(default=3.0, gt=0.0)

    # Viewport
    min_fit_zoom: float = Field(default=6.0, ge=0.0, description="Fits never settle more zoomed-out than this.")
    initial_max_zoom: float = Field(default=14.0, ge=0.0, description="Zoom-in cap for the initial automatic fit.")
    focus_zoom: float = Field(default=14.0, ge=0.0)
    fit_padding_px: int = Field(default=40, ge=0)
    fit_duration_ms: int = Field(default=200, ge=0)
    ease_duration_ms: int = Field(default=100, ge=0)
    fit_settle_ms: int = Field(default=220, ge=0)
    default_center: tuple[float, float] = Field(default=(-25.2744, 133.7751), description="(lat, lng) of the initial view.")
    default_zoom: float = 4.0

    # Sidebar layout
    narrow_breakpoint_px: int = Field(default=768, ge=0)
    narrow_max_items: int = Field(default=10, ge=1)

    # Shopify sync
    shopify_shop: Optional[str] = Field(default=None, description="Shop domain, e.g. my-shop.myshopify.com.")
    shopify_admin_token: Optional[str] = None
    shopify_api_version: str = "2024-10"
    shopify_page_size: int = Field(default=250, ge=1, le=250)
    backfill_token: Optional[str] = Field(default=None, description="Shared secret for the sync endpoints.")
    sync_delay_seconds: float = Field(default=0.2, ge=0.0)
    geocode_pending_delay_seconds: float = Field(default=1.1, ge=0.0)
    geocode_pending_batch_size: int = Field(default=15, ge=1)
    default_country: str = "Australia"
    hide_tag: str = "nomap"

    @field_validator("stockists_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("default_center", mode="before")
    @classmethod
    def _parse_center_from_env(cls, value: Any) -> tuple[float, float]:
        """Parse a "lat,lng" pair from environment variable (comma-separated or JSON array)."""
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                parsed = [item.strip() for item in value.split(",") if item.strip()]
            value = parsed
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return (float(value[0]), float(value[1]))
        raise ValueError("default_center must be a (latitude, longitude) pair")


settings = Settings()
