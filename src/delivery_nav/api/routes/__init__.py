"""Route group exports."""

from . import geocoding, health, routes

__all__ = ["routes", "health", "geocoding"]
