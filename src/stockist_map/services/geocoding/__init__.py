"""Geocoding service exports."""

from .nominatim import GeocodingError, NominatimGeocoder

__all__ = ["NominatimGeocoder", "GeocodingError"]
