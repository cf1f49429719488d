"""Relay protocol event types and HTTP response models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class InboundEventType(str, Enum):
    """Events a player or observer session may send."""

    HELLO = "hello"
    POSITION_UPDATE = "position_update"
    CLEAR_TRACK = "clear_track"


class OutboundEventType(str, Enum):
    """Events pushed to observer sessions."""

    AIRCRAFT_SNAPSHOT = "aircraft_snapshot"
    AIRCRAFT_TRACK_HISTORY = "aircraft_track_history"
    AIRCRAFT_UPDATE = "aircraft_update"
    AIRCRAFT_BATCH_UPDATE = "aircraft_batch_update"
    AIRCRAFT_REMOVE = "aircraft_remove"
    AIRCRAFT_TRACK_CLEAR = "aircraft_track_clear"
    ERROR = "error"


class InboundMessage(BaseModel):
    """Envelope of a JSON text frame received on the websocket."""

    type: str = Field(..., description="Event type")
    payload: Any = Field(default=None, description="Event payload")
    role: Optional[str] = Field(default=None, description="Role declared by hello")

    model_config = ConfigDict(extra="ignore")


def build_event(event_type: OutboundEventType, payload: Any) -> dict[str, Any]:
    """Return the JSON-ready envelope for an outbound event."""

    return {"type": event_type.value, "payload": payload}


class ReportAcceptedResponse(BaseModel):
    """Response returned after an HTTP position report."""

    status: str = Field(..., description="accepted or dropped")
    aircraft_id: Optional[str] = Field(default=None, alias="aircraftId")

    model_config = ConfigDict(populate_by_name=True)


class RelayStatsResponse(BaseModel):
    """Counters describing relay activity."""

    aircraft: int
    tracked: int
    observers: int
    players: int
    accepted_reports: int
    dropped_reports: int
    ignored_messages: int
    pending_writes: int


__all__ = [
    "InboundEventType",
    "InboundMessage",
    "OutboundEventType",
    "RelayStatsResponse",
    "ReportAcceptedResponse",
    "build_event",
]
