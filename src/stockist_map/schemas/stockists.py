"""Pydantic request/response models for stockist endpoints."""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StockistFeedModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    tags: Optional[str] = None
    latitude: float
    longitude: float
    updated_at: Optional[str] = None


class SearchRequest(BaseModel):
    name: str = Field(default="", description="Case-insensitive name substring.")
    postcode: str = Field(default="", description="Postcode substring; unmatched postcodes fall back to a radius search.")
    state: str = Field(default="", description="Exact region code, e.g. NSW.")
    viewport_width: int = Field(default=1024, ge=1, description="Map viewport width in CSS pixels.")
    viewport_height: int = Field(default=768, ge=1, description="Map viewport height in CSS pixels.")
    expanded: bool = Field(default=False, description="Render the full list even on narrow layouts.")
    initial: bool = Field(default=False, description="Initial page load: fit all stockists with the zoom-in cap.")


class NearbyRequest(SearchRequest):
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    error: Optional[Literal["denied", "timeout", "unavailable", "unsupported"]] = Field(
        default=None, description="Geolocation failure reported by the browser."
    )

    @model_validator(mode="after")
    def _require_pair(self) -> "NearbyRequest":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class CoordinateModel(BaseModel):
    latitude: float
    longitude: float


class ListEntryModel(BaseModel):
    stockist_id: str
    name: str
    address_line: str
    locality_line: str
    country_line: str


class ShowAllModel(BaseModel):
    total: int
    label: str


class SearchResponse(BaseModel):
    mode: Literal["direct", "radius_fallback", "no_results", "nearby"]
    layout: Literal["narrow", "wide"]
    total: int
    visible_ids: List[str]
    entries: List[ListEntryModel]
    marker_visibility: dict[str, bool]
    expanded: bool
    show_all: Optional[ShowAllModel] = None
    user_location: Optional[CoordinateModel] = None
    origin: Optional[CoordinateModel] = None
    radius_km: Optional[float] = None
    notice: Optional[str] = None
    location_action_enabled: bool = True
    viewport: List[dict[str, Any]]
    zoom: float
    center: CoordinateModel


class StatesResponse(BaseModel):
    states: List[str]
