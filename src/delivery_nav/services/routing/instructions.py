"""Human-readable instruction text for route steps."""

from __future__ import annotations

from typing import Optional

from ...config import settings
from ...models.domain import AddressWithCoordinates
from ..geospatial import compass_direction
from .osrm_client import Maneuver

STARTING_POINT_LABEL = "starting point"


def _onto(street_name: str) -> str:
    return f" onto {street_name}" if street_name else ""


def maneuver_instruction(maneuver: Maneuver) -> str:
    """Phrase an OSRM maneuver the way a driver reads it."""
    kind = maneuver.maneuver_type
    modifier = maneuver.modifier
    street = maneuver.street_name

    if kind == "depart":
        heading = compass_direction(maneuver.bearing_after) if maneuver.bearing_after is not None else None
        text = f"Head {heading}" if heading else "Depart"
        return f"{text} on {street}" if street else text
    if kind == "arrive":
        return "Arrive at destination"
    if kind in ("roundabout", "rotary"):
        if maneuver.exit_number:
            return f"Enter the roundabout and take exit {maneuver.exit_number}{_onto(street)}"
        return f"Enter the roundabout{_onto(street)}"
    if modifier == "uturn":
        return f"Make a U-turn{_onto(street)}"
    if kind in ("turn", "end of road", "fork", "on ramp", "off ramp") and modifier:
        if modifier in ("slight left", "slight right", "sharp left", "sharp right"):
            return f"Make a {modifier} turn{_onto(street)}"
        if modifier == "straight":
            return f"Continue straight{_onto(street)}"
        return f"Turn {modifier}{_onto(street)}"
    if kind == "merge":
        return f"Merge{_onto(street)}"
    if street:
        return f"Continue on {street}"
    return "Continue on route"


def arrival_suffix(destination: Optional[AddressWithCoordinates]) -> str:
    """Reminder appended when the destination has an exact delivery time."""
    if destination is None or not destination.exact_delivery_time:
        return ""
    return (
        f" (Arrive by {destination.exact_delivery_time}, "
        f"aim to be {settings.arrive_early_minutes} minutes early)"
    )


def destination_label(destination: Optional[AddressWithCoordinates]) -> str:
    return destination.full_address if destination is not None else STARTING_POINT_LABEL


def arrive_instruction(destination: Optional[AddressWithCoordinates]) -> str:
    return f"Arrive at {destination_label(destination)}{arrival_suffix(destination)}"
