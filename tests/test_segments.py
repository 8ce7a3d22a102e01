import time

import pytest

from delivery_nav.models.domain import AddressWithCoordinates, Coordinate
from delivery_nav.services.geospatial import haversine_miles
from delivery_nav.services.routing.osrm_client import Maneuver, SegmentRoute
from delivery_nav.services.routing.results import Failed, Ok
from delivery_nav.services.routing.segments import build_legs, route_segments
from delivery_nav.services.routing.sequencer import SequenceResult


def _stop(sid: str, lat: float, lng: float, delivery_time: str | None = None) -> AddressWithCoordinates:
    return AddressWithCoordinates(
        address_id=sid,
        full_address=f"{sid} Street",
        exact_delivery_time=delivery_time,
        position=(lat, lng),
    )


def _segment(start: Coordinate, end: Coordinate, meters: float = 1609.34, seconds: float = 180.0) -> SegmentRoute:
    return SegmentRoute(
        distance_meters=meters,
        duration_seconds=seconds,
        coordinates=[start.as_lng_lat(), end.as_lng_lat()],
        maneuvers=[
            Maneuver(distance_meters=meters / 2, duration_seconds=seconds / 2, maneuver_type="depart",
                     street_name="Main St", bearing_after=0.0),
            Maneuver(distance_meters=meters / 2, duration_seconds=seconds / 2, maneuver_type="turn",
                     modifier="left", street_name="Oak Ave"),
            Maneuver(distance_meters=0.0, duration_seconds=0.0, maneuver_type="arrive", street_name="Oak Ave"),
        ],
    )


class DummyOSRM:
    def __init__(self):
        self.calls: list[tuple[Coordinate, Coordinate]] = []

    def route_segment(self, start, end):
        self.calls.append((start, end))
        return Ok(_segment(start, end))


class FailingOSRM:
    def route_segment(self, start, end):
        return Failed("OSRM API returned 503")


class ExplodingOSRM:
    def route_segment(self, start, end):
        raise RuntimeError("socket closed")


def test_build_legs_prefixes_anchor():
    a, b = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45)
    anchor = Coordinate(37.79, -122.41)

    legs = build_legs(SequenceResult(waypoints=[a, b], anchor=anchor))

    assert [(leg.start, leg.end) for leg in legs] == [(anchor, a.coordinate), (a.coordinate, b.coordinate)]
    assert [leg.destination for leg in legs] == [a, b]


def test_build_legs_return_to_start_closes_the_loop():
    a, b = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45)

    legs = build_legs(SequenceResult(waypoints=[a, b], anchor=None), return_to_start=True)

    assert len(legs) == 2
    assert legs[-1].start == b.coordinate
    assert legs[-1].end == a.coordinate
    assert legs[-1].destination is None


def test_build_legs_single_waypoint_has_no_legs():
    assert build_legs(SequenceResult(waypoints=[_stop("A", 37.8, -122.4)], anchor=None), return_to_start=True) == []


def test_failed_segment_falls_back_to_straight_line():
    a, b = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45)
    legs = build_legs(SequenceResult(waypoints=[a, b], anchor=None))

    outcome = route_segments(legs, FailingOSRM())

    distance = haversine_miles(a.coordinate, b.coordinate)
    assert outcome.distance_miles == pytest.approx(distance)
    assert outcome.duration_seconds == pytest.approx(distance / 30 * 3600)
    assert len(outcome.steps) == 1
    step = outcome.steps[0]
    assert step.instruction == "Head to B Street"
    assert step.distance == f"{distance:.1f} mi"
    assert step.duration == f"{round(distance / 30 * 60)} min"
    assert step.is_destination is True
    assert outcome.coordinates == [a.coordinate.as_lng_lat(), b.coordinate.as_lng_lat()]
    assert [failure.segment_index for failure in outcome.failures] == [0]


def test_failed_segment_to_timed_stop_mentions_arriving_early():
    a, b = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45, "14:30")
    legs = build_legs(SequenceResult(waypoints=[a, b], anchor=None))

    outcome = route_segments(legs, FailingOSRM())

    assert "Arrive by 14:30, aim to be 3 minutes early" in outcome.steps[-1].instruction


def test_routed_segments_rewrite_only_the_final_arrival():
    a, b, c = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45), _stop("C", 37.70, -122.50, "14:30")
    legs = build_legs(SequenceResult(waypoints=[a, b, c], anchor=None))

    outcome = route_segments(legs, DummyOSRM())

    assert len(outcome.steps) == 6
    assert outcome.steps[0].instruction == "Head north on Main St"
    assert outcome.steps[1].instruction == "Turn left onto Oak Ave"
    assert outcome.steps[1].street_name == "Oak Ave"
    assert outcome.steps[2].instruction == "Arrive at destination"
    assert outcome.steps[2].is_destination is False
    final = outcome.steps[-1]
    assert final.instruction == "Arrive at C Street (Arrive by 14:30, aim to be 3 minutes early)"
    assert final.turn_type == "arrive"
    assert final.is_destination is True
    assert [step.is_destination for step in outcome.steps].count(True) == 1
    assert outcome.distance_miles == pytest.approx(2.0)
    assert outcome.duration_seconds == pytest.approx(360.0)
    assert len(outcome.coordinates) == 4
    assert outcome.failures == []


def test_mixed_success_and_failure_keeps_segment_order():
    a, b, c = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45), _stop("C", 37.70, -122.50)
    legs = build_legs(SequenceResult(waypoints=[a, b, c], anchor=None))

    class FirstSegmentFails(DummyOSRM):
        def route_segment(self, start, end):
            if start == a.coordinate:
                return Failed("timeout")
            return super().route_segment(start, end)

    outcome = route_segments(legs, FirstSegmentFails())

    assert outcome.steps[0].instruction == "Head to B Street"
    assert outcome.steps[0].is_destination is False
    assert outcome.steps[-1].instruction == "Arrive at C Street"
    fallback_distance = haversine_miles(a.coordinate, b.coordinate)
    assert outcome.distance_miles == pytest.approx(fallback_distance + 1.0)


def test_unexpected_client_errors_become_fallback_segments():
    a, b = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45)
    legs = build_legs(SequenceResult(waypoints=[a, b], anchor=None))

    outcome = route_segments(legs, ExplodingOSRM())

    assert outcome.failures[0].reason == "socket closed"
    assert outcome.steps[0].instruction == "Head to B Street"


def test_parallel_fetch_folds_results_in_leg_order():
    stops = [_stop(f"S{i}", 37.70 + i * 0.01, -122.40) for i in range(5)]
    legs = build_legs(SequenceResult(waypoints=stops, anchor=None))

    class SlowFirstOSRM(DummyOSRM):
        def route_segment(self, start, end):
            # Earlier segments finish last
            time.sleep(0.02 * (5 - round((start.lat - 37.70) / 0.01)))
            return super().route_segment(start, end)

    outcome = route_segments(legs, SlowFirstOSRM(), max_parallel=4)

    arrivals = [step for step in outcome.steps if step.turn_type == "arrive"]
    assert arrivals[-1].instruction == "Arrive at S4 Street"
    expected = []
    for leg in legs:
        expected.extend([leg.start.as_lng_lat(), leg.end.as_lng_lat()])
    assert outcome.coordinates == expected


def test_closing_leg_arrives_at_starting_point():
    a, b = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45)
    anchor = Coordinate(37.79, -122.41)
    legs = build_legs(SequenceResult(waypoints=[a, b], anchor=anchor), return_to_start=True)

    outcome = route_segments(legs, FailingOSRM())

    assert len(legs) == 3
    assert outcome.steps[-1].instruction == "Head to starting point"
    assert outcome.coordinates[-1] == anchor.as_lng_lat()


def test_no_legs_produces_empty_outcome():
    outcome = route_segments([], DummyOSRM())

    assert outcome.steps == []
    assert outcome.coordinates == []
    assert isinstance(outcome.legs, list)


def test_fallback_uses_requested_speed():
    a, b = _stop("A", 37.80, -122.40), _stop("B", 37.75, -122.45)
    legs = build_legs(SequenceResult(waypoints=[a, b], anchor=None))

    outcome = route_segments(legs, FailingOSRM(), speed_mph=60.0)

    distance = haversine_miles(a.coordinate, b.coordinate)
    assert outcome.duration_seconds == pytest.approx(distance / 60 * 3600)
    assert outcome.steps[0].duration == f"{round(distance / 60 * 60)} min"
