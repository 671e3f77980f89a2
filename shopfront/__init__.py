"""Shopfront: shop management backend (users, catalog, stock, billing)."""

__version__ = "1.0.0"
