"""Service-layer components of the FlightRadar relay."""

from .batcher import UpdateBatcher
from .coordinator import UpdateCoordinator, resolve_aircraft_id
from .hub import ConnectionHub, RoleChangeError, Session, Transport
from .registry import AircraftRegistry
from .simplify import point_budget, simplify
from .sweeper import SweepScheduler
from .track_store import SqlTrackStorage, TrackStorage, TrackStore

__all__ = [
    "AircraftRegistry",
    "ConnectionHub",
    "RoleChangeError",
    "Session",
    "SqlTrackStorage",
    "SweepScheduler",
    "TrackStorage",
    "TrackStore",
    "Transport",
    "UpdateBatcher",
    "UpdateCoordinator",
    "point_budget",
    "resolve_aircraft_id",
    "simplify",
]
