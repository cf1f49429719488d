"""In-memory registry of currently active aircraft."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from flightradar.models.aircraft import AircraftState

logger = logging.getLogger("flightradar.registry")


class AircraftRegistry:
    """Map of aircraft id to its latest state and last-seen time.

    All methods are synchronous and run on the event loop, so mutations are
    serialized without a lock.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._aircraft: dict[str, AircraftState] = {}

    def upsert(self, aircraft_id: str, state: AircraftState) -> AircraftState:
        """Insert or fully replace the entry for ``aircraft_id``."""

        now = self._clock()
        previous = self._aircraft.get(aircraft_id)
        last_seen = now
        if previous is not None and previous.last_seen_at > now:
            # clock stepped backwards; last_seen_at never decreases
            last_seen = previous.last_seen_at

        stored = state.model_copy(
            update={
                "aircraft_id": aircraft_id,
                "last_seen_at": last_seen,
                "last_update_at": now,
            }
        )
        self._aircraft[aircraft_id] = stored
        if previous is None:
            logger.info("Aircraft %s entered the registry", aircraft_id)
        return stored

    def get(self, aircraft_id: str) -> Optional[AircraftState]:
        return self._aircraft.get(aircraft_id)

    def snapshot(self) -> list[AircraftState]:
        """Return copies of all current entries in no particular order."""

        return [state.model_copy() for state in self._aircraft.values()]

    def find_stale(self, now: float, timeout: float) -> set[str]:
        return {
            aircraft_id
            for aircraft_id, state in self._aircraft.items()
            if now - state.last_seen_at > timeout
        }

    def remove(self, aircraft_id: str) -> Optional[AircraftState]:
        """Remove an entry; removing an unknown id is a no-op."""

        removed = self._aircraft.pop(aircraft_id, None)
        if removed is not None:
            logger.info("Aircraft %s left the registry", aircraft_id)
        return removed

    def ids(self) -> list[str]:
        return list(self._aircraft)

    def now(self) -> float:
        return self._clock()

    def __contains__(self, aircraft_id: object) -> bool:
        return aircraft_id in self._aircraft

    def __len__(self) -> int:
        return len(self._aircraft)


__all__ = ["AircraftRegistry"]
