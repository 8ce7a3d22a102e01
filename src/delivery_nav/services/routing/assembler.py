"""Combine segment routing output into a single optimized route."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import OptimizedRoute, RouteStep
from ..geospatial import format_duration, format_fuel, format_miles, format_minutes, haversine_miles
from .instructions import arrival_suffix, arrive_instruction, destination_label
from .segments import Leg, SegmentRoutingOutcome
from .sequencer import SequenceResult

logger = logging.getLogger(__name__)


def _straight_line_outcome(legs: Sequence[Leg], speed_mph: float) -> SegmentRoutingOutcome:
    """Rebuild the whole route from direct lines between waypoints."""
    outcome = SegmentRoutingOutcome(legs=list(legs))
    outcome.coordinates.append(legs[0].start.as_lng_lat())
    last_index = len(legs) - 1
    for leg in legs:
        distance = haversine_miles(leg.start, leg.end)
        outcome.coordinates.append(leg.end.as_lng_lat())
        outcome.distance_miles += distance
        outcome.steps.append(
            RouteStep(
                instruction=f"Drive to {destination_label(leg.destination)}{arrival_suffix(leg.destination)}",
                distance=format_miles(distance),
                duration=format_minutes(distance / speed_mph * 60),
                is_destination=leg.index == last_index,
            )
        )
    outcome.duration_seconds = outcome.distance_miles / speed_mph * 3600
    return outcome


def assemble_route(
    sequence: SequenceResult,
    outcome: SegmentRoutingOutcome,
    *,
    speed_mph: float | None = None,
    fuel_mpg: float | None = None,
) -> OptimizedRoute:
    """Build the ``OptimizedRoute`` returned to callers.

    Segment output is used as-is when it produced any geometry. Otherwise the
    route is regenerated from straight lines so totals always match the steps
    and coordinates returned.
    """
    speed_mph = speed_mph or settings.average_speed_mph
    fuel_mpg = fuel_mpg or settings.fuel_mpg

    if not outcome.legs:
        # Single stop and nothing to drive from
        destination = sequence.waypoints[0]
        return OptimizedRoute(
            waypoints=list(sequence.waypoints),
            total_distance=format_miles(0.0),
            total_duration=format_duration(0),
            total_fuel=format_fuel(0.0, fuel_mpg),
            steps=[
                RouteStep(
                    instruction=arrive_instruction(destination),
                    distance=format_miles(0.0),
                    duration=format_minutes(0),
                    turn_type="arrive",
                    is_destination=True,
                )
            ],
            coordinates=[destination.coordinate.as_lng_lat()],
            current_location=sequence.anchor,
            real_routing=False,
        )

    real_routing = len(outcome.coordinates) > 0
    if not real_routing:
        logger.warning("No segment geometry was returned. Falling back to direct lines for the whole route.")
        outcome = _straight_line_outcome(outcome.legs, speed_mph)

    return OptimizedRoute(
        waypoints=list(sequence.waypoints),
        total_distance=format_miles(outcome.distance_miles),
        total_duration=format_duration(outcome.duration_seconds),
        total_fuel=format_fuel(outcome.distance_miles, fuel_mpg),
        steps=outcome.steps,
        coordinates=outcome.coordinates,
        current_location=sequence.anchor,
        real_routing=real_routing,
        total_distance_miles=outcome.distance_miles,
        total_duration_seconds=outcome.duration_seconds,
    )
