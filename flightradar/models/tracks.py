"""Models for historical aircraft track samples."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TrackPoint(BaseModel):
    """One immutable historical position sample."""

    lat: float = Field(..., description="Latitude in decimal degrees")
    lon: float = Field(..., description="Longitude in decimal degrees")
    altitude: int = Field(default=0, description="Altitude in feet")
    speed: int = Field(default=0, description="Ground speed in knots")
    heading: int = Field(default=0, description="Heading in degrees")
    timestamp: datetime = Field(..., description="Sample time (UTC)")

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class TrackHistoryChunk(BaseModel):
    """One page of an aircraft's simplified history sent to observers."""

    aircraft_id: str = Field(..., alias="aircraftId")
    points: list[TrackPoint] = Field(default_factory=list)
    current: int = Field(..., description="1-based page number")
    total: int = Field(..., description="Total number of pages")
    is_last: bool = Field(..., alias="isLast")

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["TrackHistoryChunk", "TrackPoint"]
