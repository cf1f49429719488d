import pytest

from flightradar.config import Settings, _get_bool


@pytest.mark.parametrize("raw", ["1", "true", "YES", "on"])
def test_truthy_values(monkeypatch, raw):
    monkeypatch.setenv("FLIGHTRADAR_TEST_FLAG", raw)
    assert _get_bool("FLIGHTRADAR_TEST_FLAG") is True


@pytest.mark.parametrize("raw", ["0", "false", "off", ""])
def test_falsy_values(monkeypatch, raw):
    monkeypatch.setenv("FLIGHTRADAR_TEST_FLAG", raw)
    assert _get_bool("FLIGHTRADAR_TEST_FLAG", default=True) is False


def test_missing_value_uses_default(monkeypatch):
    monkeypatch.delenv("FLIGHTRADAR_TEST_FLAG", raising=False)
    assert _get_bool("FLIGHTRADAR_TEST_FLAG", default=True) is True


def test_relay_defaults():
    config = Settings()

    assert config.retention_hours == 12
    assert config.liveness_timeout_seconds == 30
    assert config.sweep_interval_seconds == 5
    assert config.prune_interval_seconds == 6 * 60 * 60
    assert config.flush_interval_ms == 100
    assert config.track_min_points == 500
    assert config.track_max_points == 5000
