"""Geocoding exports."""

from .cache import GeocodeCache
from .nominatim import Geocoder, NominatimClient

__all__ = ["GeocodeCache", "Geocoder", "NominatimClient"]
