from __future__ import annotations

import contextlib
from datetime import timedelta
import logging
import time

from fastapi import FastAPI, Request

from flightradar import db
from flightradar.api import api_router
from flightradar.config import Settings, settings
from flightradar.services import (
    AircraftRegistry,
    ConnectionHub,
    SqlTrackStorage,
    SweepScheduler,
    TrackStorage,
    TrackStore,
    UpdateBatcher,
    UpdateCoordinator,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("flightradar")


def build_relay(
    storage: TrackStorage | None, config: Settings = settings
) -> tuple[UpdateCoordinator, SweepScheduler]:
    """Wire the relay services together from configuration."""

    retention = timedelta(hours=config.retention_hours)
    hub = ConnectionHub()
    track_store = TrackStore(
        storage,
        retention=retention,
        max_raw_points=config.track_max_raw_points,
        max_pending_writes=config.max_pending_writes,
        points_per_minute=config.track_points_per_minute,
        min_points=config.track_min_points,
        max_points=config.track_max_points,
        chunk_size=config.history_chunk_size,
    )
    batcher = UpdateBatcher(
        hub.broadcast_to_observers,
        flush_interval=config.flush_interval_ms / 1000.0,
        max_pending=config.max_pending_updates,
    )
    coordinator = UpdateCoordinator(
        AircraftRegistry(),
        track_store,
        hub,
        batcher,
        history_window=retention,
    )
    sweeper = SweepScheduler(
        coordinator,
        liveness_timeout=config.liveness_timeout_seconds,
        sweep_interval=config.sweep_interval_seconds,
        retention=retention,
        prune_interval=config.prune_interval_seconds,
        clear_history_on_timeout=config.clear_history_on_timeout,
    )
    return coordinator, sweeper


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown lifecycle."""

    db.init_db()
    logger.info("Database initialized")

    coordinator, sweeper = build_relay(SqlTrackStorage(db.SessionLocal))
    await coordinator.track_store.load_recent()
    sweeper.start()
    app.state.coordinator = coordinator
    app.state.sweeper = sweeper
    logger.info("Relay started")

    try:
        yield
    finally:
        await sweeper.stop()
        await coordinator.close()
        app.state.coordinator = None
        logger.info("Relay stopped")


app = FastAPI(title="FlightRadar Relay", lifespan=lifespan)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Root")
def read_root() -> dict[str, str]:
    """Basic root endpoint for quick verification."""

    return {"message": "FlightRadar relay is running"}
