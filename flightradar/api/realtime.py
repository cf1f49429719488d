"""Websocket endpoint shared by player and observer sessions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, status
from starlette.websockets import WebSocketState

from flightradar.services import Session, UpdateCoordinator

router = APIRouter(tags=["realtime"])

logger = logging.getLogger("flightradar.realtime")


class WebSocketTransport:
    """Adapt a Starlette websocket to the hub's transport interface."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket) -> None:
    """Register the connection, feed its frames to the coordinator, clean up on close."""

    coordinator: UpdateCoordinator | None = getattr(websocket.app.state, "coordinator", None)
    if coordinator is None:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    await websocket.accept()
    session = Session(transport=WebSocketTransport(websocket))
    coordinator.hub.register(session)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None and message.get("bytes") is not None:
                text = message["bytes"].decode("utf-8", errors="ignore")
            await coordinator.handle_frame(session, text or "")
    finally:
        await coordinator.handle_disconnect(session)
