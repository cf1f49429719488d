"""Connected sessions, their roles, and fan-out to observers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
import json
import logging
from typing import Any, Optional, Protocol
from uuid import uuid4

from flightradar.domain import DECLARABLE_ROLES, SessionRole

logger = logging.getLogger("flightradar.hub")


class RoleChangeError(ValueError):
    """Raised when a session declares an invalid or conflicting role."""


class Transport(Protocol):
    """Minimal send interface of a session's connection."""

    @property
    def is_open(self) -> bool:
        """Whether the connection can still accept frames."""

    async def send_text(self, data: str) -> None:
        """Send one text frame."""


@dataclass(eq=False)
class Session:
    """One connection and the role it declared."""

    transport: Transport
    session_id: str = field(default_factory=lambda: uuid4().hex)
    role: SessionRole = SessionRole.UNKNOWN
    aircraft_id: Optional[str] = None
    connected_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_open(self) -> bool:
        return self.transport.is_open


class ConnectionHub:
    """Track sessions and deliver events to observers on a best-effort basis."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def register(self, session: Session) -> None:
        self._sessions[session.session_id] = session
        logger.info("Session %s connected (%s open)", session.session_id, len(self._sessions))

    def unregister(self, session: Session) -> Optional[Session]:
        removed = self._sessions.pop(session.session_id, None)
        if removed is not None:
            logger.info(
                "Session %s (%s) disconnected", session.session_id, session.role.value
            )
        return removed

    def set_role(
        self,
        session: Session,
        role: SessionRole | str,
        aircraft_id: Optional[str] = None,
    ) -> None:
        """Declare the session's role. The role cannot change once set."""

        try:
            declared = SessionRole(role)
        except ValueError as exc:
            raise RoleChangeError(f"Unsupported role: {role!r}") from exc
        if declared not in DECLARABLE_ROLES:
            raise RoleChangeError(f"Unsupported role: {declared.value}")

        if session.role is SessionRole.UNKNOWN:
            session.role = declared
            logger.info("Session %s is a %s", session.session_id, declared.value)
        elif session.role is not declared:
            raise RoleChangeError(
                f"Session already declared as {session.role.value}; cannot become {declared.value}"
            )

        if aircraft_id and declared is SessionRole.PLAYER:
            self.bind_aircraft(session, aircraft_id)

    def bind_aircraft(self, session: Session, aircraft_id: str) -> Optional[str]:
        """Bind a player session to the aircraft it reports. Returns the previous id."""

        if session.role is not SessionRole.PLAYER:
            raise RoleChangeError("Only player sessions own an aircraft")
        previous = session.aircraft_id
        if previous != aircraft_id:
            session.aircraft_id = aircraft_id
            if previous is not None:
                logger.info(
                    "Session %s switched aircraft %s -> %s",
                    session.session_id,
                    previous,
                    aircraft_id,
                )
        return previous

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def observers(self) -> list[Session]:
        return [s for s in self._sessions.values() if s.role is SessionRole.OBSERVER]

    def players(self) -> list[Session]:
        return [s for s in self._sessions.values() if s.role is SessionRole.PLAYER]

    def players_for(self, aircraft_id: str) -> list[Session]:
        return [s for s in self.players() if s.aircraft_id == aircraft_id]

    async def send(self, session: Session, event: dict[str, Any]) -> bool:
        """Send one event to a single session. Never raises on transport errors."""

        return await self._deliver(session, json.dumps(event))

    async def broadcast_to_observers(self, event: dict[str, Any]) -> int:
        """Deliver ``event`` to every open observer. Returns the delivery count."""

        targets = self.observers()
        if not targets:
            return 0

        text = json.dumps(event)
        results = await asyncio.gather(*(self._deliver(session, text) for session in targets))
        delivered = sum(1 for ok in results if ok)
        if delivered < len(targets):
            logger.debug(
                "Broadcast %s reached %s of %s observers",
                event.get("type"),
                delivered,
                len(targets),
            )
        return delivered

    async def _deliver(self, session: Session, text: str) -> bool:
        if not session.is_open:
            return False
        try:
            await session.transport.send_text(text)
        except Exception as exc:
            logger.debug("Dropping frame for session %s: %s", session.session_id, exc)
            return False
        return True

    def on_player_disconnect(self, session: Session) -> Optional[str]:
        """Unregister ``session`` and return the aircraft it abandoned, if any.

        An aircraft still reported by another live player session (for
        example after a page reload) is not considered abandoned.
        """

        self.unregister(session)
        if session.role is not SessionRole.PLAYER or not session.aircraft_id:
            return None
        if self.players_for(session.aircraft_id):
            return None
        return session.aircraft_id

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ["ConnectionHub", "RoleChangeError", "Session", "Transport"]
