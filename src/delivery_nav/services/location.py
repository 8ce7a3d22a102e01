"""Current-location providers used to anchor a route at the driver's position."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from ..config import settings
from ..models.domain import Coordinate

logger = logging.getLogger(__name__)


class LocationUnavailable(Exception):
    """The current position could not be obtained."""


class LocationProvider(Protocol):
    def get_current_location(self) -> Coordinate:
        ...


class FixedLocationProvider:
    """Serves the fix the client captured on the device, if it sent one."""

    def __init__(self, coordinate: Coordinate | None = None) -> None:
        self.coordinate = coordinate

    def get_current_location(self) -> Coordinate:
        if self.coordinate is None:
            raise LocationUnavailable("No location fix was supplied by the client.")
        return self.coordinate


class HTTPLocationProvider:
    """Requests a fresh fix from an IP geolocation endpoint.

    Every call hits the endpoint; earlier fixes are never reused.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url or settings.location_service_url
        self.timeout = timeout if timeout is not None else settings.location_timeout_seconds
        self._transport = transport

    def get_current_location(self) -> Coordinate:
        if not self.url:
            raise LocationUnavailable("Location service is not configured.")
        try:
            with httpx.Client(timeout=httpx.Timeout(self.timeout), transport=self._transport) as client:
                response = client.get(self.url, headers={"Cache-Control": "no-cache"})
                response.raise_for_status()
                data = response.json()
            lat = data["lat"] if "lat" in data else data["latitude"]
            lng = data["lon"] if "lon" in data else data["longitude"]
            return Coordinate(lat=float(lat), lng=float(lng))
        except httpx.TimeoutException as exc:
            raise LocationUnavailable(f"Timed out after {self.timeout:.0f}s waiting for a location fix") from exc
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            raise LocationUnavailable(f"Error getting current location: {exc}") from exc


class ChainedLocationProvider:
    """Tries each provider in turn, returning the first fix obtained."""

    def __init__(self, *providers: LocationProvider) -> None:
        self.providers = providers

    def get_current_location(self) -> Coordinate:
        errors: list[str] = []
        for provider in self.providers:
            try:
                return provider.get_current_location()
            except LocationUnavailable as exc:
                logger.debug(f"{type(provider).__name__} could not provide a fix: {exc}")
                errors.append(str(exc))
        raise LocationUnavailable("; ".join(errors) or "No location providers configured.")
