"""Domain models for delivery addresses, route settings and computed routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

CURRENT_LOCATION = "Current Location"


class TimeWindow(str, Enum):
    ANY = "Any time"
    MORNING = "Morning (8AM-12PM)"
    AFTERNOON = "Afternoon (12PM-5PM)"
    EVENING = "Evening (5PM-8PM)"


class Priority(str, Enum):
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"


class DeliveryStatus(str, Enum):
    PENDING = "Pending"
    DELIVERED = "Delivered"
    FAILED = "Failed"
    ATTEMPTED = "Attempted"


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Immutable latitude/longitude pair."""

    lat: float
    lng: float

    def as_lng_lat(self) -> list[float]:
        """Return the ``[lng, lat]`` ordering used by GeoJSON and OSRM."""
        return [self.lng, self.lat]


@dataclass(slots=True)
class Address:
    """A delivery stop as entered by the user, before geocoding."""

    address_id: str
    full_address: str
    time_window: TimeWindow = TimeWindow.ANY
    exact_delivery_time: Optional[str] = None
    priority: Priority = Priority.NORMAL
    special_instructions: Optional[str] = None
    status: DeliveryStatus = DeliveryStatus.PENDING

    @property
    def is_timed(self) -> bool:
        return bool(self.exact_delivery_time)


@dataclass(slots=True)
class AddressWithCoordinates(Address):
    """An address enriched with its resolved ``(lat, lng)`` position."""

    position: tuple[float, float] = (0.0, 0.0)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.position[0], lng=self.position[1])

    @classmethod
    def from_address(cls, address: Address, coordinate: Coordinate) -> "AddressWithCoordinates":
        return cls(
            address_id=address.address_id,
            full_address=address.full_address,
            time_window=address.time_window,
            exact_delivery_time=address.exact_delivery_time,
            priority=address.priority,
            special_instructions=address.special_instructions,
            status=address.status,
            position=(coordinate.lat, coordinate.lng),
        )


@dataclass(slots=True)
class RouteSettings:
    """Routing preferences.

    Only ``start_from_current_location`` and ``return_to_start`` change how a
    route is built; the remaining flags are stored and echoed back so the
    client can display them.
    """

    shortest_distance: bool = True
    real_time_traffic: bool = True
    avoid_highways: bool = False
    avoid_tolls: bool = False
    minimize_left_turns: bool = False
    return_to_start: bool = False
    offline_mode: bool = False
    starting_point: str = CURRENT_LOCATION
    traffic_data_provider: str = "Default"

    @property
    def start_from_current_location(self) -> bool:
        return self.starting_point == CURRENT_LOCATION


@dataclass(slots=True)
class RouteStep:
    instruction: str
    distance: str
    duration: str
    turn_type: Optional[str] = None
    street_name: Optional[str] = None
    is_destination: bool = False


@dataclass(slots=True)
class OptimizedRoute:
    waypoints: List[AddressWithCoordinates]
    total_distance: str
    total_duration: str
    total_fuel: str
    steps: List[RouteStep]
    coordinates: List[list[float]] = field(default_factory=list)
    current_location: Optional[Coordinate] = None
    real_routing: bool = False
    total_distance_miles: float = 0.0
    total_duration_seconds: float = 0.0


@dataclass(frozen=True, slots=True)
class MapBounds:
    north: float
    south: float
    east: float
    west: float
