"""Bounded per-aircraft track history with durable storage.

The in-memory tracks are authoritative for queries. Every appended point is
also queued for the storage collaborator and written by a background task;
failed writes stay queued and are retried on the next append or flush.
"""

from __future__ import annotations

import asyncio
import bisect
from collections import deque
from datetime import datetime, timedelta
import logging
import math
from typing import Callable, Iterable, Optional, Protocol, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from flightradar.db_models import TrackPointRecord
from flightradar.models.tracks import TrackHistoryChunk, TrackPoint
from flightradar.services.simplify import (
    DEFAULT_MAX_POINTS,
    DEFAULT_MIN_POINTS,
    DEFAULT_POINTS_PER_MINUTE,
    point_budget,
    simplify,
)

logger = logging.getLogger("flightradar.track_store")

PendingPoint = tuple[str, TrackPoint]


def _timestamp_key(point: TrackPoint) -> datetime:
    return point.timestamp


class TrackStorage(Protocol):
    """Durable append/query collaborator for track points."""

    def append_points(self, rows: Sequence[PendingPoint]) -> None:
        """Persist a batch of ``(aircraft_id, point)`` rows atomically."""

    def load_since(self, cutoff: datetime) -> dict[str, list[TrackPoint]]:
        """Return points newer than ``cutoff`` grouped by aircraft id."""

    def delete_before(self, cutoff: datetime) -> int:
        """Delete points older than ``cutoff`` across all aircraft."""

    def delete_aircraft(self, aircraft_id: str) -> int:
        """Delete every point of one aircraft."""


class SqlTrackStorage:
    """TrackStorage backed by the ``track_points`` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def append_points(self, rows: Sequence[PendingPoint]) -> None:
        session = self._session_factory()
        try:
            session.add_all(
                [
                    TrackPointRecord(
                        aircraft_id=aircraft_id,
                        timestamp=point.timestamp,
                        lat=point.lat,
                        lon=point.lon,
                        altitude=point.altitude,
                        speed=point.speed,
                        heading=point.heading,
                    )
                    for aircraft_id, point in rows
                ]
            )
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def load_since(self, cutoff: datetime) -> dict[str, list[TrackPoint]]:
        session = self._session_factory()
        try:
            records = (
                session.query(TrackPointRecord)
                .filter(TrackPointRecord.timestamp >= cutoff)
                .order_by(TrackPointRecord.aircraft_id, TrackPointRecord.timestamp)
                .all()
            )
            grouped: dict[str, list[TrackPoint]] = {}
            for record in records:
                grouped.setdefault(record.aircraft_id, []).append(
                    TrackPoint(
                        lat=record.lat,
                        lon=record.lon,
                        altitude=record.altitude,
                        speed=record.speed,
                        heading=record.heading,
                        timestamp=record.timestamp,
                    )
                )
            return grouped
        finally:
            session.close()

    def delete_before(self, cutoff: datetime) -> int:
        session = self._session_factory()
        try:
            deleted = (
                session.query(TrackPointRecord)
                .filter(TrackPointRecord.timestamp < cutoff)
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete_aircraft(self, aircraft_id: str) -> int:
        session = self._session_factory()
        try:
            deleted = (
                session.query(TrackPointRecord)
                .filter(TrackPointRecord.aircraft_id == aircraft_id)
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def count_by_aircraft(self) -> dict[str, int]:
        session = self._session_factory()
        try:
            rows = (
                session.query(TrackPointRecord.aircraft_id, func.count())
                .group_by(TrackPointRecord.aircraft_id)
                .all()
            )
            return {aircraft_id: count for aircraft_id, count in rows}
        finally:
            session.close()


class TrackStore:
    """Per-aircraft track history with retention and simplification."""

    def __init__(
        self,
        storage: Optional[TrackStorage] = None,
        *,
        retention: timedelta = timedelta(hours=12),
        max_raw_points: int = 20000,
        max_pending_writes: int = 10000,
        points_per_minute: float = DEFAULT_POINTS_PER_MINUTE,
        min_points: int = DEFAULT_MIN_POINTS,
        max_points: int = DEFAULT_MAX_POINTS,
        chunk_size: int = 200,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.storage = storage
        self.retention = retention
        self.max_raw_points = max_raw_points
        self.points_per_minute = points_per_minute
        self.min_points = min_points
        self.max_points = max_points
        self.chunk_size = chunk_size
        self._clock = clock
        self._tracks: dict[str, list[TrackPoint]] = {}
        self._pending: deque[PendingPoint] = deque(maxlen=max_pending_writes)
        self._write_lock = asyncio.Lock()
        self._writer_task: asyncio.Task | None = None

    def now(self) -> datetime:
        return self._clock()

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def tracked_ids(self) -> list[str]:
        return list(self._tracks)

    def point_count(self, aircraft_id: str) -> int:
        return len(self._tracks.get(aircraft_id, ()))

    def append(self, aircraft_id: str, point: TrackPoint) -> None:
        """Add a point to the aircraft's track and queue it for storage."""

        track = self._tracks.setdefault(aircraft_id, [])
        if not track or track[-1].timestamp <= point.timestamp:
            track.append(point)
        else:
            bisect.insort(track, point, key=_timestamp_key)

        overflow = len(track) - self.max_raw_points
        if overflow > 0:
            del track[:overflow]

        if self.storage is None:
            return

        if len(self._pending) == self._pending.maxlen:
            logger.warning("Pending track writes full; dropping oldest point")
        self._pending.append((aircraft_id, point))
        self._schedule_writer()

    def _schedule_writer(self) -> None:
        if self._writer_task is not None and not self._writer_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop; points stay queued until flush() is awaited
            return
        self._writer_task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending:
            if not await self.flush():
                break

    async def flush(self) -> int:
        """Write all queued points to storage. Returns the number written."""

        if self.storage is None:
            return 0

        async with self._write_lock:
            if not self._pending:
                return 0
            batch = list(self._pending)
            self._pending.clear()
            try:
                await asyncio.to_thread(self.storage.append_points, batch)
            except Exception as exc:
                logger.warning(
                    "Failed to persist %s track points; will retry: %s", len(batch), exc
                )
                self._requeue(batch)
                return 0

        logger.debug("Persisted %s track points", len(batch))
        return len(batch)

    def _requeue(self, batch: Iterable[PendingPoint]) -> None:
        self._pending = deque(
            [*batch, *self._pending], maxlen=self._pending.maxlen
        )

    def history(
        self, aircraft_id: str, window: Optional[timedelta] = None
    ) -> list[TrackPoint]:
        """Return the simplified recent track of one aircraft, oldest first."""

        track = self._tracks.get(aircraft_id)
        if not track:
            return []

        cutoff = self._clock() - (window if window is not None else self.retention)
        start = bisect.bisect_left(track, cutoff, key=_timestamp_key)
        recent = track[start:]
        if not recent:
            return []

        cap = point_budget(
            recent[-1].timestamp - recent[0].timestamp,
            points_per_minute=self.points_per_minute,
            min_points=self.min_points,
            max_points=self.max_points,
        )
        return simplify(recent, cap)

    def history_chunks(
        self,
        aircraft_id: str,
        window: Optional[timedelta] = None,
        chunk_size: Optional[int] = None,
    ) -> list[TrackHistoryChunk]:
        """Split the aircraft's history into pages for transmission."""

        points = self.history(aircraft_id, window)
        if not points:
            return []

        size = max(chunk_size or self.chunk_size, 1)
        total = math.ceil(len(points) / size)
        return [
            TrackHistoryChunk(
                aircraft_id=aircraft_id,
                points=points[index * size : (index + 1) * size],
                current=index + 1,
                total=total,
                is_last=index + 1 == total,
            )
            for index in range(total)
        ]

    async def prune(self, older_than: datetime) -> int:
        """Delete points older than ``older_than`` in memory and storage.

        Storage failures propagate so the caller can log and retry on its
        next scheduled run.
        """

        removed = 0
        for aircraft_id in list(self._tracks):
            track = self._tracks[aircraft_id]
            cut = bisect.bisect_left(track, older_than, key=_timestamp_key)
            if cut:
                del track[:cut]
                removed += cut
            if not track:
                del self._tracks[aircraft_id]

        deleted = 0
        if self.storage is not None:
            async with self._write_lock:
                self._pending = deque(
                    (item for item in self._pending if item[1].timestamp >= older_than),
                    maxlen=self._pending.maxlen,
                )
                deleted = await asyncio.to_thread(self.storage.delete_before, older_than)

        logger.info(
            "Pruned track points older than %s (memory=%s, storage=%s)",
            older_than.isoformat(),
            removed,
            deleted,
        )
        return removed

    async def clear(self, aircraft_id: str) -> None:
        """Delete all points of one aircraft. Storage failures are logged."""

        cleared_at = self._clock()
        self._tracks.pop(aircraft_id, None)
        if self.storage is None:
            return

        async with self._write_lock:
            self._pending = deque(
                (
                    item
                    for item in self._pending
                    if item[0] != aircraft_id or item[1].timestamp > cleared_at
                ),
                maxlen=self._pending.maxlen,
            )
            try:
                deleted = await asyncio.to_thread(self.storage.delete_aircraft, aircraft_id)
            except Exception as exc:
                logger.warning("Failed to clear stored track for %s: %s", aircraft_id, exc)
                return

        logger.info("Cleared track for %s (%s stored points)", aircraft_id, deleted)

    async def load_recent(self, window: Optional[timedelta] = None) -> int:
        """Warm the in-memory tracks from storage. Returns points loaded."""

        if self.storage is None:
            return 0

        cutoff = self._clock() - (window if window is not None else self.retention)
        try:
            grouped = await asyncio.to_thread(self.storage.load_since, cutoff)
        except Exception as exc:
            logger.warning("Failed to load stored tracks; starting empty: %s", exc)
            return 0

        loaded = 0
        for aircraft_id, points in grouped.items():
            merged = sorted([*self._tracks.get(aircraft_id, []), *points], key=_timestamp_key)
            self._tracks[aircraft_id] = merged[-self.max_raw_points :]
            loaded += len(points)

        logger.info("Loaded %s stored track points for %s aircraft", loaded, len(grouped))
        return loaded


__all__ = ["SqlTrackStorage", "TrackStorage", "TrackStore"]
