"""Location resolution exports."""

from .resolver import (
    FixedPositionProvider,
    LocationResolver,
    LocationUnavailableError,
    PositionOptions,
    UnsupportedPositionProvider,
)

__all__ = [
    "LocationResolver",
    "LocationUnavailableError",
    "PositionOptions",
    "FixedPositionProvider",
    "UnsupportedPositionProvider",
]
