"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from ...config import settings
from ...models.domain import Coordinate
from .results import Failed, Ok, Result

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Maneuver:
    """One OSRM route step, still in meters and seconds."""

    distance_meters: float
    duration_seconds: float
    maneuver_type: str
    modifier: Optional[str] = None
    street_name: str = ""
    bearing_after: Optional[float] = None
    exit_number: Optional[int] = None


@dataclass(slots=True)
class SegmentRoute:
    """Directions between one pair of waypoints."""

    distance_meters: float
    duration_seconds: float
    coordinates: List[list[float]] = field(default_factory=list)
    maneuvers: List[Maneuver] = field(default_factory=list)


def _parse_maneuver(step: dict) -> Maneuver:
    maneuver = step.get("maneuver") or {}
    return Maneuver(
        distance_meters=float(step.get("distance", 0.0)),
        duration_seconds=float(step.get("duration", 0.0)),
        maneuver_type=maneuver.get("type") or "straight",
        modifier=maneuver.get("modifier"),
        street_name=step.get("name") or "",
        bearing_after=maneuver.get("bearing_after"),
        exit_number=maneuver.get("exit"),
    )


def parse_route_response(data: dict) -> SegmentRoute:
    """Convert an OSRM ``/route`` response body into a ``SegmentRoute``.

    Raises ``ValueError`` when the response carries no usable route.
    """
    if data.get("code") != "Ok":
        raise ValueError(f"OSRM route request failed: {data.get('message') or data.get('code') or 'unknown error'}")
    routes = data.get("routes") or []
    if not routes:
        raise ValueError("OSRM returned zero routes.")

    route = routes[0]
    # OSRM returns GeoJSON coordinates as [longitude, latitude]
    geometry = route.get("geometry") or {}
    coordinates = [[float(point[0]), float(point[1])] for point in geometry.get("coordinates") or []]

    maneuvers: list[Maneuver] = []
    legs = route.get("legs") or []
    if legs:
        maneuvers = [_parse_maneuver(step) for step in legs[0].get("steps") or []]

    return SegmentRoute(
        distance_meters=float(route["distance"]),
        duration_seconds=float(route["duration"]),
        coordinates=coordinates,
        maneuvers=maneuvers,
    )


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        """Create a client per request so segment fetches can run on worker threads."""
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            limits=httpx.Limits(max_connections=1, max_keepalive_connections=0),
            transport=self._transport,
        )

    def route_segment(self, start: Coordinate, end: Coordinate) -> Result[SegmentRoute]:
        """Request turn-by-turn directions for a single pair of coordinates.

        Failures are returned as ``Failed`` and never retried; the caller
        decides how to fall back.
        """
        # OSRM route endpoint expects coordinates as "lon,lat;lon,lat"
        coordinate_str = f"{start.lng},{start.lat};{end.lng},{end.lat}"
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"
        params = {"overview": "full", "steps": "true", "geometries": "geojson"}

        client = self._get_client()
        try:
            response = client.get(url, params=params)
            response.raise_for_status()
            return Ok(parse_route_response(response.json()))
        except httpx.TimeoutException as exc:
            logger.warning(f"OSRM route request timed out after {self.timeout:.0f}s: {exc}")
            return Failed(f"timeout: {exc}")
        except httpx.HTTPStatusError as exc:
            return Failed(f"OSRM API returned {exc.response.status_code}")
        except (httpx.HTTPError, OSError) as exc:
            return Failed(f"Failed to connect to OSRM service at {self.base_url}: {exc}")
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            return Failed(f"Malformed OSRM response: {exc}")
        finally:
            client.close()


def check_health(base_url: str | None = None, transport: httpx.BaseTransport | None = None) -> bool:
    """Check OSRM service health by routing between two fixed points.

    Public OSRM endpoints have no /health endpoint, so connectivity is
    tested with a minimal route request (San Francisco downtown).
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    client = OSRMClient(base_url=base, timeout=5.0, transport=transport)
    result = client.route_segment(Coordinate(lat=37.7937, lng=-122.3965), Coordinate(lat=37.7849, lng=-122.4094))
    if isinstance(result, Failed):
        logger.info(f"OSRM health check failed: {result.reason}")
        return False
    return True
