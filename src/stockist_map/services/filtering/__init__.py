"""Stockist filtering exports."""

from .engine import apply_filters, match_stockists, matches, nearby, within_radius

__all__ = ["apply_filters", "match_stockists", "matches", "nearby", "within_radius"]
