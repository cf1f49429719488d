"""Periodic liveness sweep and track retention prune."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import timedelta
import logging
from typing import Awaitable, Callable

from flightradar.services.coordinator import UpdateCoordinator

logger = logging.getLogger("flightradar.sweeper")


class SweepScheduler:
    """Run the liveness sweep and the retention prune on fixed timers."""

    def __init__(
        self,
        coordinator: UpdateCoordinator,
        *,
        liveness_timeout: float = 30.0,
        sweep_interval: float = 5.0,
        retention: timedelta = timedelta(hours=12),
        prune_interval: float = 6 * 60 * 60,
        clear_history_on_timeout: bool = False,
    ) -> None:
        self.coordinator = coordinator
        self.liveness_timeout = liveness_timeout
        self.sweep_interval = sweep_interval
        self.retention = retention
        self.prune_interval = prune_interval
        self.clear_history_on_timeout = clear_history_on_timeout
        self._tasks: list[asyncio.Task] = []

    async def run_liveness_sweep(self) -> list[str]:
        """Remove aircraft silent for longer than the liveness timeout."""

        registry = self.coordinator.registry
        stale = registry.find_stale(registry.now(), self.liveness_timeout)
        if not stale:
            return []
        return await self.coordinator.remove_aircraft(
            sorted(stale),
            clear_history=self.clear_history_on_timeout,
            reason="timeout",
        )

    async def run_retention_prune(self) -> int:
        """Drop track points older than the retention window."""

        track_store = self.coordinator.track_store
        return await track_store.prune(track_store.now() - self.retention)

    async def _run_periodic(
        self, name: str, interval: float, step: Callable[[], Awaitable[object]]
    ) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await step()
            except asyncio.CancelledError:
                logger.info("%s loop cancelled", name)
                raise
            except Exception as exc:
                logger.warning("%s iteration failed; retrying next tick: %s", name, exc)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(
                self._run_periodic("Liveness sweep", self.sweep_interval, self.run_liveness_sweep)
            ),
            asyncio.create_task(
                self._run_periodic("Retention prune", self.prune_interval, self.run_retention_prune)
            ),
        ]
        logger.info(
            "Sweep scheduler started (timeout=%ss, sweep=%ss, prune=%ss)",
            self.liveness_timeout,
            self.sweep_interval,
            self.prune_interval,
        )

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)


__all__ = ["SweepScheduler"]
