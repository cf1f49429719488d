"""Orchestrates position reports, aircraft lifecycle and observer updates.

Every inbound event goes through :meth:`UpdateCoordinator.handle_message`, and
every aircraft lifecycle transition goes through this module:

- Absent -> Active: first valid report (registry upsert, track append,
  batched ``aircraft_update``).
- Active -> Active: subsequent reports, same actions.
- Active -> Absent: liveness timeout, ``clear_track`` or the owning session
  closing (``aircraft_remove``, plus ``aircraft_track_clear`` when the
  history is erased).
"""

from __future__ import annotations

from datetime import timedelta
import json
import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from flightradar.domain import SessionRole
from flightradar.models.aircraft import AircraftState, PositionReport
from flightradar.models.events import (
    InboundEventType,
    InboundMessage,
    OutboundEventType,
    build_event,
)
from flightradar.models.tracks import TrackPoint
from flightradar.services.batcher import UpdateBatcher
from flightradar.services.hub import ConnectionHub, RoleChangeError, Session
from flightradar.services.registry import AircraftRegistry
from flightradar.services.track_store import TrackStore

logger = logging.getLogger("flightradar.coordinator")


def resolve_aircraft_id(report: PositionReport) -> str:
    """Pick the identity of a report: explicit id, then user id, then callsign."""

    return report.id or report.user_id or report.google_id or report.callsign


class UpdateCoordinator:
    """Validate reports, update state and push results to observers."""

    def __init__(
        self,
        registry: AircraftRegistry,
        track_store: TrackStore,
        hub: ConnectionHub,
        batcher: Optional[UpdateBatcher] = None,
        *,
        history_window: Optional[timedelta] = None,
    ) -> None:
        self.registry = registry
        self.track_store = track_store
        self.hub = hub
        self.batcher = batcher or UpdateBatcher(hub.broadcast_to_observers)
        self.history_window = history_window
        self.accepted_reports = 0
        self.dropped_reports = 0
        self.ignored_messages = 0

    async def handle_frame(self, session: Session, text: str) -> None:
        """Decode one JSON text frame and dispatch it. Undecodable frames are ignored."""

        try:
            message = json.loads(text)
        except ValueError:
            self.ignored_messages += 1
            logger.debug("Ignoring non-JSON frame from session %s", session.session_id)
            return
        await self.handle_message(session, message)

    async def handle_message(self, session: Session, message: Any) -> None:
        """Dispatch one decoded inbound frame by its event type."""

        try:
            envelope = InboundMessage.model_validate(message)
        except ValidationError:
            self.ignored_messages += 1
            logger.debug("Ignoring frame without a type from session %s", session.session_id)
            return

        payload = envelope.payload if isinstance(envelope.payload, dict) else {}

        if envelope.type == InboundEventType.HELLO.value:
            await self.handle_hello(session, envelope.role or payload.get("role"))
        elif envelope.type == InboundEventType.POSITION_UPDATE.value:
            await self.submit_position(envelope.payload, session=session)
        elif envelope.type == InboundEventType.CLEAR_TRACK.value:
            await self.handle_clear_request(session, payload.get("aircraftId"))
        else:
            self.ignored_messages += 1
            logger.debug("Ignoring unknown event type %r", envelope.type)

    async def handle_hello(self, session: Session, role: Any) -> None:
        newly_declared = session.role is SessionRole.UNKNOWN
        try:
            self.hub.set_role(session, role)
        except RoleChangeError as exc:
            logger.warning("Rejected hello from session %s: %s", session.session_id, exc)
            await self.hub.send(
                session,
                build_event(
                    OutboundEventType.ERROR,
                    {"code": "role_rejected", "message": str(exc)},
                ),
            )
            return

        if newly_declared and session.role is SessionRole.OBSERVER:
            await self.send_initial_state(session)

    async def send_initial_state(self, session: Session) -> None:
        """Send the live snapshot, then every tracked aircraft's history in pages."""

        snapshot = [state.to_wire() for state in self.registry.snapshot()]
        if not await self.hub.send(
            session, build_event(OutboundEventType.AIRCRAFT_SNAPSHOT, snapshot)
        ):
            return

        histories = 0
        for aircraft_id in self.track_store.tracked_ids():
            chunks = self.track_store.history_chunks(aircraft_id, self.history_window)
            for chunk in chunks:
                delivered = await self.hub.send(
                    session,
                    build_event(OutboundEventType.AIRCRAFT_TRACK_HISTORY, chunk.to_wire()),
                )
                if not delivered:
                    logger.debug("Observer %s left during history replay", session.session_id)
                    return
            if chunks:
                histories += 1

        logger.info(
            "Sent %s aircraft and %s track histories to observer %s",
            len(snapshot),
            histories,
            session.session_id,
        )

    async def submit_position(
        self, raw: Any, session: Optional[Session] = None
    ) -> Optional[AircraftState]:
        """Apply one position report. Invalid reports are dropped and counted."""

        try:
            report = PositionReport.model_validate(raw)
        except ValidationError as exc:
            self.dropped_reports += 1
            logger.debug("Dropped malformed position report: %s", exc.errors())
            return None

        aircraft_id = resolve_aircraft_id(report)
        if not aircraft_id:
            self.dropped_reports += 1
            logger.debug("Dropped position report without any identity")
            return None

        if session is not None:
            if session.role is SessionRole.UNKNOWN:
                self.hub.set_role(session, SessionRole.PLAYER)
            if session.role is not SessionRole.PLAYER:
                self.dropped_reports += 1
                logger.debug("Observer session %s sent a position report", session.session_id)
                return None
            self.hub.bind_aircraft(session, aircraft_id)

        state = self.registry.upsert(aircraft_id, AircraftState.from_report(aircraft_id, report))
        self.track_store.append(
            aircraft_id,
            TrackPoint(
                lat=report.lat,
                lon=report.lon,
                altitude=report.alt,
                speed=report.speed,
                heading=report.heading,
                timestamp=self.track_store.now(),
            ),
        )
        self.batcher.add(state)
        self.accepted_reports += 1
        return state

    async def handle_clear_request(self, session: Session, aircraft_id: Any) -> None:
        """Handle ``clear_track`` from a player; players may only clear their own aircraft."""

        target = aircraft_id if isinstance(aircraft_id, str) and aircraft_id else session.aircraft_id
        if session.role is not SessionRole.PLAYER or not target or target != session.aircraft_id:
            self.ignored_messages += 1
            logger.warning(
                "Session %s (%s) may not clear track %r",
                session.session_id,
                session.role.value,
                target,
            )
            return
        await self.clear_aircraft(target, reason="clear_track")

    async def clear_aircraft(self, aircraft_id: str, *, reason: str = "manual") -> None:
        await self.remove_aircraft([aircraft_id], clear_history=True, reason=reason)

    async def handle_disconnect(self, session: Session) -> Optional[str]:
        """Forget a closed session; a player's aircraft leaves with it."""

        aircraft_id = self.hub.on_player_disconnect(session)
        if aircraft_id:
            await self.remove_aircraft([aircraft_id], clear_history=True, reason="disconnect")
        return aircraft_id

    async def remove_aircraft(
        self, aircraft_ids: Iterable[str], *, clear_history: bool, reason: str
    ) -> list[str]:
        """Move aircraft to Absent and announce it. Returns the ids that were live."""

        ids = list(dict.fromkeys(aircraft_ids))
        self.batcher.discard(ids)
        removed = [
            aircraft_id
            for aircraft_id in ids
            if self.registry.remove(aircraft_id) is not None
        ]

        if removed:
            await self.hub.broadcast_to_observers(
                build_event(OutboundEventType.AIRCRAFT_REMOVE, removed)
            )

        if clear_history:
            for aircraft_id in ids:
                had_track = self.track_store.point_count(aircraft_id) > 0
                await self.track_store.clear(aircraft_id)
                if not had_track and aircraft_id not in removed:
                    continue
                await self.hub.broadcast_to_observers(
                    build_event(OutboundEventType.AIRCRAFT_TRACK_CLEAR, {"aircraftId": aircraft_id})
                )

        if ids:
            logger.info(
                "Removed aircraft %s (reason=%s, history_cleared=%s)",
                ", ".join(ids),
                reason,
                clear_history,
            )
        return removed

    def stats(self) -> dict[str, int]:
        return {
            "aircraft": len(self.registry),
            "tracked": len(self.track_store.tracked_ids()),
            "observers": len(self.hub.observers()),
            "players": len(self.hub.players()),
            "accepted_reports": self.accepted_reports,
            "dropped_reports": self.dropped_reports,
            "ignored_messages": self.ignored_messages,
            "pending_writes": self.track_store.pending_writes,
        }

    async def close(self) -> None:
        await self.batcher.close()
        await self.track_store.flush()


__all__ = ["UpdateCoordinator", "resolve_aircraft_id"]
