"""Visit-order sequencing for delivery stops.

Stops with an exact delivery time are fixed in chronological order. Stops
without one are threaded into that sequence by cheapest insertion: each is
placed in the gap that adds the least straight-line travel, treating the
sequence as a cycle. This is O(n^2) and intended for tens of stops, not an
exact TSP.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ...models.domain import AddressWithCoordinates, Coordinate
from ..geospatial import haversine_miles
from ..location import LocationProvider, LocationUnavailable
from .errors import NoRouteComputable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SequenceResult:
    waypoints: List[AddressWithCoordinates]
    anchor: Optional[Coordinate]


def _resolve_anchor(
    addresses: Sequence[AddressWithCoordinates],
    location_provider: LocationProvider | None,
) -> Coordinate:
    if location_provider is not None:
        try:
            return location_provider.get_current_location()
        except LocationUnavailable as exc:
            logger.warning(f"Failed to get current location: {exc}. Anchoring at the first address.")
    else:
        logger.warning("No location provider available. Anchoring at the first address.")
    return addresses[0].coordinate


def _nearest_index(anchor: Coordinate, addresses: Sequence[AddressWithCoordinates]) -> int:
    best_index = 0
    best_distance = float("inf")
    for index, address in enumerate(addresses):
        distance = haversine_miles(anchor, address.coordinate)
        # Strict comparison keeps the first occurrence on ties
        if distance < best_distance:
            best_distance = distance
            best_index = index
    return best_index


def insertion_detour(
    sequence: Sequence[AddressWithCoordinates],
    position: int,
    candidate: AddressWithCoordinates,
) -> float:
    """Extra distance incurred by inserting ``candidate`` before ``sequence[position]``.

    Neighbours wrap around: position 0 is preceded by the last stop and
    position ``len(sequence)`` is followed by the first.
    """
    size = len(sequence)
    prev_stop = sequence[(position - 1) % size]
    next_stop = sequence[position % size]
    direct = haversine_miles(prev_stop.coordinate, next_stop.coordinate)
    via_candidate = haversine_miles(prev_stop.coordinate, candidate.coordinate) + haversine_miles(
        candidate.coordinate, next_stop.coordinate
    )
    return via_candidate - direct


def cheapest_insertion_index(
    sequence: Sequence[AddressWithCoordinates],
    candidate: AddressWithCoordinates,
) -> int:
    """Return the first position with the minimum detour for ``candidate``."""
    if not sequence:
        return 0
    best_position = 0
    best_detour = float("inf")
    for position in range(len(sequence) + 1):
        detour = insertion_detour(sequence, position, candidate)
        if detour < best_detour:
            best_detour = detour
            best_position = position
    return best_position


def sequence_waypoints(
    addresses: Sequence[AddressWithCoordinates],
    start_from_current_location: bool = False,
    location_provider: LocationProvider | None = None,
) -> SequenceResult:
    """Order geocoded addresses into a visiting sequence.

    Returns the ordered stops (a permutation of ``addresses``) and the anchor
    coordinate used for the start, or ``None`` when the route is not anchored
    at the current location.
    """
    if not addresses:
        raise NoRouteComputable("At least one geocoded address is required for route calculation.")

    timed = [address for address in addresses if address.is_timed]
    untimed = [address for address in addresses if not address.is_timed]
    # list.sort is stable, so equal delivery times keep their input order
    timed.sort(key=lambda address: address.exact_delivery_time)

    anchor: Coordinate | None = None
    if start_from_current_location:
        anchor = _resolve_anchor(addresses, location_provider)

    if not timed:
        if anchor is not None:
            nearest = _nearest_index(anchor, addresses)
            waypoints = [addresses[nearest], *addresses[:nearest], *addresses[nearest + 1 :]]
        else:
            waypoints = list(addresses)
        return SequenceResult(waypoints=waypoints, anchor=anchor)

    waypoints = list(timed)
    for address in untimed:
        position = cheapest_insertion_index(waypoints, address)
        waypoints.insert(position, address)

    logger.debug(
        f"Sequenced {len(waypoints)} stops ({len(timed)} timed, {len(untimed)} untimed), "
        f"anchored={anchor is not None}"
    )
    return SequenceResult(waypoints=waypoints, anchor=anchor)
