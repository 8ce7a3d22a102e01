"""Routing error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass


class RoutingError(Exception):
    """Base class for route computation errors."""


class NoRouteComputable(RoutingError):
    """Raised when no geocoded address is left to build a route from."""


@dataclass(frozen=True, slots=True)
class SegmentRoutingFailure:
    """Why a single directions request produced no usable route."""

    segment_index: int
    reason: str


@dataclass(frozen=True, slots=True)
class GeocodeMiss:
    """An address that could not be resolved to coordinates."""

    address_id: str
    full_address: str

    @property
    def message(self) -> str:
        return f"Could not find coordinates for '{self.full_address}'"
