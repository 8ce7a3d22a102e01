"""Routing request/response schemas."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.domain import CURRENT_LOCATION, DeliveryStatus, Priority, TimeWindow

DELIVERY_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CoordinateModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class AddressInput(BaseModel):
    id: Optional[str] = Field(default=None, description="Caller's identifier; defaults to the 1-based position.")
    full_address: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90, description="Skip geocoding when both are set.")
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    time_window: TimeWindow = TimeWindow.ANY
    exact_delivery_time: Optional[str] = Field(
        default=None,
        pattern=DELIVERY_TIME_PATTERN,
        description="Hard delivery appointment as 24-hour HH:MM.",
    )
    priority: Priority = Priority.NORMAL
    special_instructions: Optional[str] = None
    status: DeliveryStatus = DeliveryStatus.PENDING

    @field_validator("exact_delivery_time", "special_instructions", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        # Imported spreadsheets send empty cells as ""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class RouteSettingsModel(BaseModel):
    shortest_distance: bool = True
    real_time_traffic: bool = True
    avoid_highways: bool = False
    avoid_tolls: bool = False
    minimize_left_turns: bool = False
    return_to_start: bool = False
    offline_mode: bool = False
    starting_point: str = CURRENT_LOCATION
    traffic_data_provider: str = "Default"


class RouteOptimizationRequest(BaseModel):
    addresses: List[AddressInput] = Field(default_factory=list)
    settings: RouteSettingsModel = Field(default_factory=RouteSettingsModel)
    current_location: Optional[CoordinateModel] = Field(
        default=None,
        description="Device location fix; used when the route starts from the current location.",
    )


class AddressWithCoordinatesModel(BaseModel):
    id: str
    full_address: str
    time_window: TimeWindow
    exact_delivery_time: Optional[str] = None
    priority: Priority
    special_instructions: Optional[str] = None
    status: DeliveryStatus
    position: tuple[float, float]


class RouteStepModel(BaseModel):
    instruction: str
    distance: str
    duration: str
    turn_type: Optional[str] = None
    street_name: Optional[str] = None
    is_destination: bool = False


class MapBoundsModel(BaseModel):
    north: float
    south: float
    east: float
    west: float


class OptimizedRouteModel(BaseModel):
    waypoints: List[AddressWithCoordinatesModel]
    total_distance: str
    total_duration: str
    total_fuel: str
    steps: List[RouteStepModel]
    coordinates: List[List[float]] = Field(default_factory=list, description="Path geometry as [lng, lat] pairs.")
    current_location: Optional[CoordinateModel] = None
    real_routing: bool = False


class RouteOptimizationResponse(BaseModel):
    route: OptimizedRouteModel
    bounds: MapBoundsModel
    settings: RouteSettingsModel
    warnings: List[str] = Field(default_factory=list)
    metadata: dict = Field(default_factory=dict)


class GeocodeRequest(BaseModel):
    address: str = Field(..., min_length=1)


class GeocodeResponse(BaseModel):
    address: str
    lat: float
    lng: float
