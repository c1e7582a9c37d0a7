"""Route group exports."""

from . import health, stockists, sync

__all__ = ["health", "stockists", "sync"]
