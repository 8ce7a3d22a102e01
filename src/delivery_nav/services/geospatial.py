"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import MultiPoint

from ..models.domain import Coordinate, MapBounds

EARTH_RADIUS_MILES = 3958.8
METERS_PER_MILE = 1609.34

# Shown when there is nothing to frame yet (San Francisco Bay Area).
DEFAULT_BOUNDS = MapBounds(north=37.8, south=37.7, east=-122.3, west=-122.5)
BOUNDS_PADDING_RATIO = 0.1

_COMPASS_POINTS = ("north", "northeast", "east", "southeast", "south", "southwest", "west", "northwest")


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Compute great-circle distance in miles using the Haversine formula."""

    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_MILES * c


def bearing_degrees(a: Coordinate, b: Coordinate) -> float:
    """Calculate the initial bearing from ``a`` to ``b`` in ``[0, 360)``."""

    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    delta_lambda = math.radians(b.lng - a.lng)
    y = math.sin(delta_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360) % 360


def compass_direction(bearing: float) -> str:
    """Map a bearing to one of eight compass points."""
    return _COMPASS_POINTS[int(((bearing + 22.5) % 360) // 45)]


def format_duration(seconds: float) -> str:
    """Format seconds as ``"{h}h {m}m"`` or ``"{m}m"``."""
    if seconds < 0:
        raise ValueError(f"Duration must be non-negative, got {seconds}")
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_miles(miles: float) -> str:
    return f"{miles:.1f} mi"


def format_minutes(minutes: float) -> str:
    return f"{round(minutes)} min"


def format_fuel(miles: float, mpg: float) -> str:
    return f"{miles / mpg:.1f} gal"


def calculate_bounds(
    coordinates: Sequence[Coordinate],
    current_location: Coordinate | None = None,
) -> MapBounds:
    """Return a padded bounding box framing every coordinate.

    The current location, when given, is framed as well. Without any
    coordinates the default Bay Area box is returned.
    """

    points = [(coord.lng, coord.lat) for coord in coordinates]
    if current_location is not None:
        points.append((current_location.lng, current_location.lat))
    if not points:
        return DEFAULT_BOUNDS

    west, south, east, north = MultiPoint(points).bounds
    lat_padding = (north - south) * BOUNDS_PADDING_RATIO
    lng_padding = (east - west) * BOUNDS_PADDING_RATIO
    return MapBounds(
        north=north + lat_padding,
        south=south - lat_padding,
        east=east + lng_padding,
        west=west - lng_padding,
    )
