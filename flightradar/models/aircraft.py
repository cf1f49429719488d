"""Models for aircraft position reports and live aircraft state."""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_int(value: Any) -> int:
    """Coerce a loosely-typed telemetry number to int, defaulting to 0."""

    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(round(number))


def _coerce_str(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _coerce_coordinate(value: Any, limit: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("coordinate must be a number")
    number = float(value)
    if not math.isfinite(number) or abs(number) > limit:
        raise ValueError("coordinate out of range")
    return number


class PositionReport(BaseModel):
    """Inbound ``position_update`` payload as produced by the game client.

    Only ``lat`` and ``lon`` are mandatory. Every other field is coerced
    permissively so a malformed optional value never blocks an update.
    """

    id: str = Field(default="", description="Explicit aircraft identity")
    callsign: str = Field(default="", description="Player callsign")
    aircraft_type: str = Field(default="", alias="type", description="Aircraft model name")
    lat: float = Field(..., description="Latitude in decimal degrees")
    lon: float = Field(..., description="Longitude in decimal degrees")
    alt: int = Field(default=0, description="Altitude above ground in feet")
    alt_msl: int = Field(default=0, alias="altMSL", description="Altitude above sea level in feet")
    heading: int = Field(default=0, description="Heading in degrees")
    speed: int = Field(default=0, description="Ground speed in knots")
    vspeed: int = Field(default=0, description="Vertical speed in feet per minute")
    flight_no: str = Field(default="", alias="flightNo")
    departure: str = ""
    arrival: str = ""
    takeoff_time: str = Field(default="", alias="takeoffTime")
    squawk: str = ""
    flight_plan: list[Any] = Field(default_factory=list, alias="flightPlan")
    next_waypoint: str = Field(default="", alias="nextWaypoint")
    user_id: str = Field(default="", alias="userId")
    google_id: str = Field(default="", alias="googleId")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("lat", mode="before")
    @classmethod
    def _validate_lat(cls, value: Any) -> float:
        return _coerce_coordinate(value, 90.0)

    @field_validator("lon", mode="before")
    @classmethod
    def _validate_lon(cls, value: Any) -> float:
        return _coerce_coordinate(value, 180.0)

    @field_validator("alt", "alt_msl", "speed", "vspeed", mode="before")
    @classmethod
    def _validate_number(cls, value: Any) -> int:
        return _coerce_int(value)

    @field_validator("heading", mode="before")
    @classmethod
    def _validate_heading(cls, value: Any) -> int:
        return _coerce_int(value) % 360

    @field_validator(
        "id",
        "callsign",
        "aircraft_type",
        "flight_no",
        "departure",
        "arrival",
        "takeoff_time",
        "squawk",
        "next_waypoint",
        "user_id",
        "google_id",
        mode="before",
    )
    @classmethod
    def _validate_text(cls, value: Any) -> str:
        return _coerce_str(value)

    @field_validator("flight_plan", mode="before")
    @classmethod
    def _validate_flight_plan(cls, value: Any) -> list[Any]:
        if isinstance(value, (list, tuple)):
            return list(value)
        return []


class AircraftState(BaseModel):
    """Latest known telemetry for one tracked aircraft."""

    aircraft_id: str = Field(..., alias="aircraftId", description="Stable aircraft identity")
    callsign: str = ""
    aircraft_type: str = Field(default="", alias="aircraftType")
    lat: float
    lon: float
    altitude_agl: Optional[int] = Field(
        default=None, alias="altitudeAGL", description="Altitude above ground in feet"
    )
    altitude_msl: int = Field(default=0, alias="altitudeMSL")
    heading: int = 0
    ground_speed: int = Field(default=0, alias="groundSpeed", description="Knots")
    vertical_speed: int = Field(default=0, alias="verticalSpeed", description="Feet per minute")
    flight_number: str = Field(default="", alias="flightNumber")
    departure: str = ""
    arrival: str = ""
    squawk: str = ""
    takeoff_time_utc: str = Field(default="", alias="takeoffTimeUtc")
    next_waypoint: str = Field(default="", alias="nextWaypoint")
    flight_plan: list[Any] = Field(default_factory=list, alias="flightPlan")
    user_id: str = Field(default="", alias="userId")
    last_seen_at: float = Field(default=0.0, alias="lastSeenAt", description="Epoch seconds")
    last_update_at: float = Field(default=0.0, alias="lastUpdateAt", description="Epoch seconds")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_report(cls, aircraft_id: str, report: PositionReport) -> "AircraftState":
        return cls(
            aircraft_id=aircraft_id,
            callsign=report.callsign,
            aircraft_type=report.aircraft_type,
            lat=report.lat,
            lon=report.lon,
            altitude_agl=report.alt,
            altitude_msl=report.alt_msl,
            heading=report.heading,
            ground_speed=report.speed,
            vertical_speed=report.vspeed,
            flight_number=report.flight_no,
            departure=report.departure,
            arrival=report.arrival,
            squawk=report.squawk,
            takeoff_time_utc=report.takeoff_time,
            next_waypoint=report.next_waypoint,
            flight_plan=report.flight_plan,
            user_id=report.user_id or report.google_id,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


__all__ = ["AircraftState", "PositionReport"]
