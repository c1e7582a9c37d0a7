"""Stockist map backend: stockist feed, store-locator search engine and Shopify sync."""

__version__ = "1.0.0"
