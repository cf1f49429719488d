"""Read and operator endpoints for live aircraft and their tracks."""

from __future__ import annotations

from datetime import timedelta
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from flightradar.api.dependencies import get_coordinator
from flightradar.config import settings
from flightradar.models import RelayStatsResponse
from flightradar.security import require_report_secret
from flightradar.services import UpdateCoordinator

router = APIRouter(prefix="/api/v1", tags=["aircraft"])

logger = logging.getLogger("flightradar.aircraft")


@router.get("/aircraft", summary="List aircraft currently in the air")
async def list_aircraft(
    coordinator: UpdateCoordinator = Depends(get_coordinator),
) -> list[dict[str, Any]]:
    """Return the live registry snapshot."""

    return [state.to_wire() for state in coordinator.registry.snapshot()]


@router.get("/aircraft/{aircraft_id}/track", summary="Get an aircraft's simplified track")
async def get_track(
    aircraft_id: str,
    window_minutes: int = Query(
        default=int(settings.retention_hours * 60),
        ge=1,
        le=int(settings.retention_hours * 60),
        description="How far back to return points",
    ),
    coordinator: UpdateCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    points = coordinator.track_store.history(aircraft_id, timedelta(minutes=window_minutes))
    if not points:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "track_not_found", "message": f"No track for {aircraft_id}"},
        )
    return {"aircraftId": aircraft_id, "points": [point.to_wire() for point in points]}


@router.delete(
    "/aircraft/{aircraft_id}",
    summary="Remove an aircraft and erase its track",
    dependencies=[Depends(require_report_secret)],
)
async def clear_aircraft(
    aircraft_id: str,
    coordinator: UpdateCoordinator = Depends(get_coordinator),
) -> dict[str, str]:
    """Manual clear by an operator; observers receive remove and track-clear events."""

    await coordinator.clear_aircraft(aircraft_id, reason="operator")
    logger.info("Operator cleared aircraft %s", aircraft_id)
    return {"status": "cleared", "aircraftId": aircraft_id}


@router.get("/stats", response_model=RelayStatsResponse, summary="Relay counters")
async def get_stats(
    coordinator: UpdateCoordinator = Depends(get_coordinator),
) -> RelayStatsResponse:
    return RelayStatsResponse(**coordinator.stats())
