"""Storefront backend: products, orders, users and settings over SQL or a JSON file."""
