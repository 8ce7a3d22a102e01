"""Per-segment directions with straight-line fallback."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ...config import settings
from ...models.domain import AddressWithCoordinates, Coordinate, RouteStep
from ..geospatial import METERS_PER_MILE, format_miles, format_minutes, haversine_miles
from .errors import SegmentRoutingFailure
from .instructions import arrival_suffix, arrive_instruction, destination_label, maneuver_instruction
from .osrm_client import OSRMClient, SegmentRoute
from .results import Failed, Ok, Result
from .sequencer import SequenceResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Leg:
    """Travel between two consecutive waypoints.

    ``destination`` is ``None`` when the leg ends back at the route origin.
    """

    index: int
    start: Coordinate
    end: Coordinate
    destination: Optional[AddressWithCoordinates]


@dataclass(slots=True)
class SegmentRoutingOutcome:
    legs: List[Leg]
    steps: List[RouteStep] = field(default_factory=list)
    coordinates: List[list[float]] = field(default_factory=list)
    distance_miles: float = 0.0
    duration_seconds: float = 0.0
    failures: List[SegmentRoutingFailure] = field(default_factory=list)


def build_legs(sequence: SequenceResult, return_to_start: bool = False) -> list[Leg]:
    """Pair up consecutive waypoints, starting at the anchor when there is one."""
    points: list[tuple[Coordinate, Optional[AddressWithCoordinates]]] = []
    if sequence.anchor is not None:
        points.append((sequence.anchor, None))
    points.extend((address.coordinate, address) for address in sequence.waypoints)

    legs = [
        Leg(index=i, start=points[i][0], end=points[i + 1][0], destination=points[i + 1][1])
        for i in range(len(points) - 1)
    ]
    if return_to_start and legs:
        legs.append(Leg(index=len(legs), start=points[-1][0], end=points[0][0], destination=None))
    return legs


def _fetch_segment(osrm_client: OSRMClient, leg: Leg) -> Result[SegmentRoute]:
    logger.debug(f"Requesting directions for segment {leg.index + 1}")
    try:
        return osrm_client.route_segment(leg.start, leg.end)
    except Exception as exc:
        logger.warning(f"Unexpected error requesting segment {leg.index + 1}: {exc}")
        return Failed(str(exc))


def _fetch_all(osrm_client: OSRMClient, legs: Sequence[Leg], max_parallel: int) -> list[Result[SegmentRoute]]:
    workers = min(max_parallel, len(legs))
    if workers <= 1:
        return [_fetch_segment(osrm_client, leg) for leg in legs]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(_fetch_segment, osrm_client, leg) for leg in legs]
        # Collect in submission order; completion order must not affect step order
        return [future.result() for future in futures]


def _routed_steps(leg: Leg, segment: SegmentRoute, is_last_segment: bool) -> list[RouteStep]:
    steps: list[RouteStep] = []
    last_index = len(segment.maneuvers) - 1
    for step_index, maneuver in enumerate(segment.maneuvers):
        is_final = is_last_segment and step_index == last_index
        instruction = maneuver_instruction(maneuver)
        turn_type = maneuver.maneuver_type
        if is_final:
            instruction = arrive_instruction(leg.destination)
            turn_type = "arrive"
        steps.append(
            RouteStep(
                instruction=instruction,
                distance=format_miles(maneuver.distance_meters / METERS_PER_MILE),
                duration=format_minutes(maneuver.duration_seconds / 60),
                turn_type=turn_type,
                street_name=maneuver.street_name or None,
                is_destination=is_final,
            )
        )
    if is_last_segment and not steps:
        steps.append(
            RouteStep(
                instruction=arrive_instruction(leg.destination),
                distance=format_miles(segment.distance_meters / METERS_PER_MILE),
                duration=format_minutes(segment.duration_seconds / 60),
                turn_type="arrive",
                is_destination=True,
            )
        )
    return steps


def fallback_step(leg: Leg, is_last_segment: bool, speed_mph: float | None = None) -> tuple[RouteStep, float]:
    """Straight-line step for a leg the routing service could not serve.

    Returns the step and the haversine distance it covers, in miles.
    """
    speed_mph = speed_mph or settings.average_speed_mph
    distance = haversine_miles(leg.start, leg.end)
    minutes = distance / speed_mph * 60
    step = RouteStep(
        instruction=f"Head to {destination_label(leg.destination)}{arrival_suffix(leg.destination)}",
        distance=format_miles(distance),
        duration=format_minutes(minutes),
        is_destination=is_last_segment,
    )
    return step, distance


def route_segments(
    legs: Sequence[Leg],
    osrm_client: OSRMClient,
    max_parallel: int | None = None,
    speed_mph: float | None = None,
) -> SegmentRoutingOutcome:
    """Fetch directions for every leg and fold them together in leg order.

    Legs the routing service cannot serve are drawn as direct lines driven at
    ``speed_mph`` (the configured average speed by default).
    """
    outcome = SegmentRoutingOutcome(legs=list(legs))
    if not legs:
        return outcome

    max_parallel = max_parallel if max_parallel is not None else settings.max_parallel_segments
    speed_mph = speed_mph or settings.average_speed_mph
    results = _fetch_all(osrm_client, legs, max_parallel)
    last_index = len(legs) - 1

    for leg, result in zip(legs, results):
        is_last_segment = leg.index == last_index
        if isinstance(result, Ok):
            segment = result.value
            outcome.distance_miles += segment.distance_meters / METERS_PER_MILE
            outcome.duration_seconds += segment.duration_seconds
            outcome.coordinates.extend(segment.coordinates)
            outcome.steps.extend(_routed_steps(leg, segment, is_last_segment))
            continue

        logger.warning(f"Segment {leg.index + 1}/{len(legs)} routing failed: {result.reason}. Using direct line.")
        outcome.failures.append(SegmentRoutingFailure(segment_index=leg.index, reason=result.reason))
        step, distance = fallback_step(leg, is_last_segment, speed_mph)
        outcome.steps.append(step)
        outcome.distance_miles += distance
        outcome.duration_seconds += distance / speed_mph * 3600
        outcome.coordinates.append(leg.start.as_lng_lat())
        outcome.coordinates.append(leg.end.as_lng_lat())

    logger.info(
        f"Routed {len(legs)} segments ({len(outcome.failures)} fallback), "
        f"{outcome.distance_miles:.1f} mi, {len(outcome.coordinates)} geometry points"
    )
    return outcome
