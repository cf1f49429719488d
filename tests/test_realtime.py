import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from flightradar import db
from flightradar.config import settings
from flightradar.main import app

UAL123_REPORT = {"id": "UAL123", "lat": 37.0, "lon": -122.0, "alt": 5000, "heading": 270, "speed": 250}


@pytest.fixture
def client(tmp_path, monkeypatch):
    engine = create_engine(
        f"sqlite:///{tmp_path}/relay.db", connect_args={"check_same_thread": False}
    )
    monkeypatch.setattr(db, "engine", engine)
    monkeypatch.setattr(
        db, "SessionLocal", sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )
    monkeypatch.setattr(settings, "require_report_secret", False)
    monkeypatch.setattr(settings, "flush_interval_ms", 10)
    with TestClient(app) as test_client:
        yield test_client


def _observe(websocket):
    websocket.send_json({"type": "hello", "role": "observer"})
    snapshot = websocket.receive_json()
    assert snapshot["type"] == "aircraft_snapshot"
    return snapshot["payload"]


def _receive_until(websocket, event_type, limit=5):
    for _ in range(limit):
        event = websocket.receive_json()
        if event["type"] == event_type:
            return event
    raise AssertionError(f"no {event_type} event received")


def test_observer_follows_a_player_session(client):
    with client.websocket_connect("/ws") as observer:
        assert _observe(observer) == []

        with client.websocket_connect("/ws") as player:
            player.send_json({"type": "hello", "role": "player"})
            player.send_json({"type": "position_update", "payload": UAL123_REPORT})

            update = observer.receive_json()
            assert update["type"] == "aircraft_update"
            assert update["payload"]["aircraftId"] == "UAL123"
            assert update["payload"]["altitudeAGL"] == 5000
            assert update["payload"]["heading"] == 270
            assert update["payload"]["groundSpeed"] == 250

            player.send_json({"type": "clear_track"})

            assert observer.receive_json() == {"type": "aircraft_remove", "payload": ["UAL123"]}
            assert observer.receive_json() == {
                "type": "aircraft_track_clear",
                "payload": {"aircraftId": "UAL123"},
            }


def test_observer_receives_http_reports(client):
    with client.websocket_connect("/ws") as observer:
        _observe(observer)

        client.post("/report", json=UAL123_REPORT)

        update = observer.receive_json()
        assert update["type"] == "aircraft_update"
        assert update["payload"]["aircraftId"] == "UAL123"


def test_late_observer_gets_snapshot_and_history(client):
    client.post("/report", json=UAL123_REPORT)
    client.post("/report", json={**UAL123_REPORT, "lat": 37.01})

    with client.websocket_connect("/ws") as observer:
        snapshot = _observe(observer)
        history = _receive_until(observer, "aircraft_track_history")

    assert [state["aircraftId"] for state in snapshot] == ["UAL123"]
    assert history["type"] == "aircraft_track_history"
    assert history["payload"]["aircraftId"] == "UAL123"
    assert history["payload"]["isLast"] is True
    assert [point["lat"] for point in history["payload"]["points"]] == [37.0, 37.01]


def test_operator_clear_is_broadcast(client):
    with client.websocket_connect("/ws") as observer:
        _observe(observer)
        client.post("/report", json=UAL123_REPORT)
        assert observer.receive_json()["type"] == "aircraft_update"

        client.delete("/api/v1/aircraft/UAL123")

        assert observer.receive_json() == {"type": "aircraft_remove", "payload": ["UAL123"]}
        assert observer.receive_json()["type"] == "aircraft_track_clear"


def test_observer_cannot_become_player(client):
    with client.websocket_connect("/ws") as observer:
        _observe(observer)

        observer.send_json({"type": "hello", "role": "player"})

        error = observer.receive_json()
        assert error["type"] == "error"
        assert error["payload"]["code"] == "role_rejected"
