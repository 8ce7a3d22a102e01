"""Routing orchestration service."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import (
    Address,
    AddressWithCoordinates,
    Coordinate,
    OptimizedRoute,
    RouteSettings,
)
from ...schemas.routing import (
    AddressInput,
    AddressWithCoordinatesModel,
    CoordinateModel,
    MapBoundsModel,
    OptimizedRouteModel,
    RouteOptimizationRequest,
    RouteOptimizationResponse,
    RouteSettingsModel,
    RouteStepModel,
)
from ..geocoding import Geocoder
from ..geospatial import calculate_bounds
from ..location import ChainedLocationProvider, FixedLocationProvider, HTTPLocationProvider, LocationProvider
from .assembler import assemble_route
from .errors import NoRouteComputable
from .osrm_client import OSRMClient
from .segments import build_legs, route_segments
from .sequencer import sequence_waypoints

logger = logging.getLogger(__name__)


def _to_address(item: AddressInput, position: int) -> Address:
    return Address(
        address_id=item.id or str(position),
        full_address=item.full_address,
        time_window=item.time_window,
        exact_delivery_time=item.exact_delivery_time,
        priority=item.priority,
        special_instructions=item.special_instructions,
        status=item.status,
    )


def _to_route_settings(model: RouteSettingsModel) -> RouteSettings:
    return RouteSettings(**model.model_dump())


def _known_positions(items: Sequence[AddressInput]) -> list[Coordinate | None]:
    return [
        Coordinate(lat=item.latitude, lng=item.longitude)
        if item.latitude is not None and item.longitude is not None
        else None
        for item in items
    ]


def build_location_provider(current_location: CoordinateModel | None) -> LocationProvider:
    """Prefer the device fix sent by the client, then the optional IP lookup."""
    fixed = FixedLocationProvider(
        Coordinate(lat=current_location.lat, lng=current_location.lng) if current_location else None
    )
    if settings.location_service_url:
        return ChainedLocationProvider(fixed, HTTPLocationProvider())
    return fixed


def compute_route(
    addresses: Sequence[AddressWithCoordinates],
    route_settings: RouteSettings,
    *,
    osrm_client: OSRMClient,
    location_provider: LocationProvider | None = None,
    speed_mph: float | None = None,
) -> OptimizedRoute:
    """Sequence geocoded addresses, route each segment and assemble the result.

    ``speed_mph`` drives every straight-line estimate, per segment or for the
    whole route. Raises ``NoRouteComputable`` when ``addresses`` is empty.
    Every other failure is absorbed into a fallback.
    """
    speed_mph = speed_mph or settings.average_speed_mph
    sequence = sequence_waypoints(
        addresses,
        start_from_current_location=route_settings.start_from_current_location,
        location_provider=location_provider,
    )
    legs = build_legs(sequence, return_to_start=route_settings.return_to_start)
    outcome = route_segments(legs, osrm_client, speed_mph=speed_mph)
    return assemble_route(sequence, outcome, speed_mph=speed_mph)


def _to_route_model(route: OptimizedRoute) -> OptimizedRouteModel:
    return OptimizedRouteModel(
        waypoints=[
            AddressWithCoordinatesModel(
                id=waypoint.address_id,
                full_address=waypoint.full_address,
                time_window=waypoint.time_window,
                exact_delivery_time=waypoint.exact_delivery_time,
                priority=waypoint.priority,
                special_instructions=waypoint.special_instructions,
                status=waypoint.status,
                position=waypoint.position,
            )
            for waypoint in route.waypoints
        ],
        total_distance=route.total_distance,
        total_duration=route.total_duration,
        total_fuel=route.total_fuel,
        steps=[
            RouteStepModel(
                instruction=step.instruction,
                distance=step.distance,
                duration=step.duration,
                turn_type=step.turn_type,
                street_name=step.street_name,
                is_destination=step.is_destination,
            )
            for step in route.steps
        ],
        coordinates=route.coordinates,
        current_location=(
            CoordinateModel(lat=route.current_location.lat, lng=route.current_location.lng)
            if route.current_location
            else None
        ),
        real_routing=route.real_routing,
    )


def plan_route(
    payload: RouteOptimizationRequest,
    *,
    geocoder: Geocoder | None = None,
    osrm_client: OSRMClient | None = None,
    location_provider: LocationProvider | None = None,
) -> RouteOptimizationResponse:
    """Geocode the requested addresses and compute an optimized route.

    Addresses that cannot be geocoded are dropped and reported as warnings.
    """
    if not payload.addresses:
        raise NoRouteComputable("At least one address is required for route calculation.")

    geocoder = geocoder or Geocoder()
    addresses = [_to_address(item, index + 1) for index, item in enumerate(payload.addresses)]
    geocoded, misses = geocoder.geocode_addresses(addresses, _known_positions(payload.addresses))
    warnings = [miss.message for miss in misses]

    if not geocoded:
        raise NoRouteComputable("None of the addresses could be geocoded. Please check the addresses and try again.")

    if osrm_client is None:
        osrm_client = OSRMClient()
    if location_provider is None:
        location_provider = build_location_provider(payload.current_location)

    route_settings = _to_route_settings(payload.settings)
    route = compute_route(
        geocoded,
        route_settings,
        osrm_client=osrm_client,
        location_provider=location_provider,
    )
    if not route.real_routing and len(route.waypoints) > 1:
        warnings.append("Turn-by-turn directions are unavailable; showing straight-line estimates.")

    waypoint_coordinates = [waypoint.coordinate for waypoint in route.waypoints]
    bounds = calculate_bounds(waypoint_coordinates, route.current_location)

    logger.info(
        f"Planned route with {len(route.waypoints)} stops: {route.total_distance}, "
        f"{route.total_duration}, {route.total_fuel} (real_routing={route.real_routing})"
    )

    return RouteOptimizationResponse(
        route=_to_route_model(route),
        bounds=MapBoundsModel(north=bounds.north, south=bounds.south, east=bounds.east, west=bounds.west),
        settings=payload.settings,
        warnings=warnings,
        metadata={
            "requested_addresses": len(payload.addresses),
            "geocoded_addresses": len(geocoded),
            "start_from_current_location": route_settings.start_from_current_location,
            "return_to_start": route_settings.return_to_start,
        },
    )
