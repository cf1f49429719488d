"""FastAPI dependencies exposing the relay services held on ``app.state``."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from flightradar.services import UpdateCoordinator


def get_coordinator(request: Request) -> UpdateCoordinator:
    coordinator: UpdateCoordinator | None = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "relay_not_ready", "message": "Relay services are not running"},
        )
    return coordinator
