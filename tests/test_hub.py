import json

import pytest

from flightradar.domain import SessionRole
from flightradar.services.hub import ConnectionHub, RoleChangeError, Session


class FakeTransport:
    def __init__(self, is_open: bool = True, fail: bool = False):
        self.is_open = is_open
        self.fail = fail
        self.sent: list[dict] = []

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(json.loads(data))


def _session(hub: ConnectionHub, role=None, **transport_kwargs) -> Session:
    session = Session(transport=FakeTransport(**transport_kwargs))
    hub.register(session)
    if role is not None:
        hub.set_role(session, role)
    return session


@pytest.mark.anyio
async def test_broadcast_skips_closed_and_failing_observers():
    hub = ConnectionHub()
    healthy = [_session(hub, "observer") for _ in range(3)]
    closed = _session(hub, "observer", is_open=False)
    failing = _session(hub, "observer", fail=True)

    delivered = await hub.broadcast_to_observers({"type": "aircraft_remove", "payload": ["UAL123"]})

    assert delivered == 3
    for session in healthy:
        assert session.transport.sent == [{"type": "aircraft_remove", "payload": ["UAL123"]}]
    assert closed.transport.sent == []
    assert failing.transport.sent == []


@pytest.mark.anyio
async def test_broadcast_reaches_only_observers():
    hub = ConnectionHub()
    observer = _session(hub, "observer")
    player = _session(hub, "player")
    undeclared = _session(hub)

    await hub.broadcast_to_observers({"type": "aircraft_update", "payload": {}})

    assert len(observer.transport.sent) == 1
    assert player.transport.sent == []
    assert undeclared.transport.sent == []


@pytest.mark.anyio
async def test_send_reports_delivery():
    hub = ConnectionHub()
    session = _session(hub, "observer")
    closed = _session(hub, "observer", is_open=False)

    assert await hub.send(session, {"type": "aircraft_snapshot", "payload": []}) is True
    assert await hub.send(closed, {"type": "aircraft_snapshot", "payload": []}) is False


def test_role_is_immutable_once_declared():
    hub = ConnectionHub()
    session = _session(hub, "observer")

    hub.set_role(session, SessionRole.OBSERVER)
    with pytest.raises(RoleChangeError):
        hub.set_role(session, "player")

    assert session.role is SessionRole.OBSERVER
    assert hub.observers() == [session]


def test_unknown_roles_are_rejected():
    hub = ConnectionHub()
    session = _session(hub)

    with pytest.raises(RoleChangeError):
        hub.set_role(session, "controller")
    with pytest.raises(RoleChangeError):
        hub.set_role(session, "unknown")

    assert session.role is SessionRole.UNKNOWN


def test_player_binding_follows_latest_aircraft():
    hub = ConnectionHub()
    player = _session(hub)
    hub.set_role(player, "player", aircraft_id="UAL123")

    assert hub.bind_aircraft(player, "UAL124") == "UAL123"
    assert player.aircraft_id == "UAL124"
    assert hub.players_for("UAL124") == [player]

    observer = _session(hub, "observer")
    with pytest.raises(RoleChangeError):
        hub.bind_aircraft(observer, "UAL123")


def test_player_disconnect_returns_abandoned_aircraft():
    hub = ConnectionHub()
    player = _session(hub, "player")
    hub.bind_aircraft(player, "UAL123")

    assert hub.on_player_disconnect(player) == "UAL123"
    assert len(hub) == 0


def test_player_disconnect_keeps_aircraft_reported_elsewhere():
    hub = ConnectionHub()
    old_tab = _session(hub, "player")
    new_tab = _session(hub, "player")
    hub.bind_aircraft(old_tab, "UAL123")
    hub.bind_aircraft(new_tab, "UAL123")

    assert hub.on_player_disconnect(old_tab) is None
    assert hub.on_player_disconnect(new_tab) == "UAL123"


def test_observer_disconnect_abandons_nothing():
    hub = ConnectionHub()
    observer = _session(hub, "observer")

    assert hub.on_player_disconnect(observer) is None
    assert hub.get(observer.session_id) is None
