"""Charger search, filtering, deduplication and caching."""
