"""HTTP position reports for producers that cannot hold a websocket."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from flightradar.api.dependencies import get_coordinator
from flightradar.models import ReportAcceptedResponse
from flightradar.security import require_report_secret
from flightradar.services import UpdateCoordinator

router = APIRouter(tags=["reports"], dependencies=[Depends(require_report_secret)])

logger = logging.getLogger("flightradar.reports")


@router.post(
    "/report",
    response_model=ReportAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a position report",
)
async def submit_report(
    payload: Any = Body(...),
    coordinator: UpdateCoordinator = Depends(get_coordinator),
) -> ReportAcceptedResponse:
    """Apply a position report. Malformed reports are dropped, not rejected."""

    state = await coordinator.submit_position(payload)
    if state is None:
        return ReportAcceptedResponse(status="dropped")
    return ReportAcceptedResponse(status="accepted", aircraft_id=state.aircraft_id)
