"""
Coalescing batcher for aircraft position broadcasts.

Position updates are collected per aircraft (the latest state wins) and sent
to observers once per flush window, so many aircraft updating at the same
time share one frame. The queue is bounded: when it is full the aircraft that
has waited longest is dropped, its next report will supersede it anyway.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
import contextlib
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from flightradar.models.aircraft import AircraftState
from flightradar.models.events import OutboundEventType, build_event

logger = logging.getLogger("flightradar.batcher")


class UpdateBatcher:
    """Batches ``aircraft_update`` events on a fixed flush interval."""

    def __init__(
        self,
        send_callback: Callable[[dict[str, Any]], Awaitable[Any]],
        *,
        flush_interval: float = 0.1,
        max_pending: int = 1000,
    ) -> None:
        """
        Args:
            send_callback: Async callable receiving the event dict to broadcast.
            flush_interval: Seconds between the first pending update and the flush.
            max_pending: Maximum number of aircraft held before dropping the oldest.
        """
        self._send_callback = send_callback
        self.flush_interval = flush_interval
        self.max_pending = max(max_pending, 1)
        self._pending: OrderedDict[str, dict[str, Any]] = OrderedDict()
        self._flush_task: Optional[asyncio.Task] = None
        self.dropped = 0

    def add(self, state: AircraftState) -> None:
        """Queue the latest state of an aircraft for the next flush."""

        aircraft_id = state.aircraft_id
        if aircraft_id in self._pending:
            self._pending.move_to_end(aircraft_id)
        self._pending[aircraft_id] = state.to_wire()

        while len(self._pending) > self.max_pending:
            dropped_id, _ = self._pending.popitem(last=False)
            self.dropped += 1
            logger.warning("Update queue full; dropped pending update for %s", dropped_id)

        if self._flush_task is None or self._flush_task.done():
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return
            self._flush_task = loop.create_task(self._flush_after_delay())

    def discard(self, aircraft_ids: Iterable[str]) -> None:
        """Forget pending updates so nothing is sent after a removal."""

        for aircraft_id in aircraft_ids:
            self._pending.pop(aircraft_id, None)

    async def _flush_after_delay(self) -> None:
        await asyncio.sleep(self.flush_interval)
        # updates added while the send is in flight start a new timer
        self._flush_task = None
        await self.flush()

    async def flush(self) -> int:
        """Send everything pending as one event. Returns the number of states sent."""

        if not self._pending:
            return 0

        states = list(self._pending.values())
        self._pending.clear()

        if len(states) == 1:
            event = build_event(OutboundEventType.AIRCRAFT_UPDATE, states[0])
        else:
            event = build_event(OutboundEventType.AIRCRAFT_BATCH_UPDATE, states)

        try:
            await self._send_callback(event)
        except Exception as exc:
            logger.warning("Failed to broadcast %s batched updates: %s", len(states), exc)
        return len(states)

    async def flush_now(self) -> int:
        """Cancel the pending timer and flush immediately."""

        await self._cancel_timer()
        return await self.flush()

    async def close(self) -> None:
        await self._cancel_timer()
        self._pending.clear()

    async def _cancel_timer(self) -> None:
        task = self._flush_task
        self._flush_task = None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    @property
    def pending_count(self) -> int:
        return len(self._pending)


__all__ = ["UpdateBatcher"]
