"""Storefront checkout, cart and order backend."""

__version__ = "0.1.0"
