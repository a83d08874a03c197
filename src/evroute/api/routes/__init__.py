"""Route group exports."""

from . import chargers, health, trips

__all__ = ["chargers", "health", "trips"]
