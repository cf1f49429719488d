"""Pydantic models for the FlightRadar relay."""

from .aircraft import AircraftState, PositionReport
from .events import (
    InboundEventType,
    InboundMessage,
    OutboundEventType,
    RelayStatsResponse,
    ReportAcceptedResponse,
    build_event,
)
from .tracks import TrackHistoryChunk, TrackPoint

__all__ = [
    "AircraftState",
    "InboundEventType",
    "InboundMessage",
    "OutboundEventType",
    "PositionReport",
    "RelayStatsResponse",
    "ReportAcceptedResponse",
    "TrackHistoryChunk",
    "TrackPoint",
    "build_event",
]
