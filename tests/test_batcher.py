import anyio
import pytest

from flightradar.models.aircraft import AircraftState
from flightradar.services.batcher import UpdateBatcher


class Recorder:
    def __init__(self):
        self.events: list[dict] = []

    async def __call__(self, event):
        self.events.append(event)


def _state(aircraft_id: str, heading: int = 0) -> AircraftState:
    return AircraftState(aircraft_id=aircraft_id, lat=37.0, lon=-122.0, heading=heading)


@pytest.mark.anyio
async def test_single_pending_update_is_sent_as_aircraft_update():
    recorder = Recorder()
    batcher = UpdateBatcher(recorder, flush_interval=60)

    batcher.add(_state("UAL123"))
    sent = await batcher.flush_now()

    assert sent == 1
    assert recorder.events[0]["type"] == "aircraft_update"
    assert recorder.events[0]["payload"]["aircraftId"] == "UAL123"


@pytest.mark.anyio
async def test_updates_are_coalesced_per_aircraft():
    recorder = Recorder()
    batcher = UpdateBatcher(recorder, flush_interval=60)

    batcher.add(_state("UAL123", heading=90))
    batcher.add(_state("DAL45"))
    batcher.add(_state("UAL123", heading=270))
    await batcher.flush_now()

    assert len(recorder.events) == 1
    event = recorder.events[0]
    assert event["type"] == "aircraft_batch_update"
    by_id = {state["aircraftId"]: state for state in event["payload"]}
    assert set(by_id) == {"UAL123", "DAL45"}
    assert by_id["UAL123"]["heading"] == 270


@pytest.mark.anyio
async def test_pending_updates_flush_after_interval():
    recorder = Recorder()
    batcher = UpdateBatcher(recorder, flush_interval=0.01)

    batcher.add(_state("UAL123"))
    with anyio.fail_after(5):
        while not recorder.events:
            await anyio.sleep(0.01)

    assert recorder.events[0]["type"] == "aircraft_update"
    assert batcher.pending_count == 0
    await batcher.close()


def test_queue_drops_oldest_when_full():
    batcher = UpdateBatcher(Recorder(), max_pending=2)

    batcher.add(_state("A"))
    batcher.add(_state("B"))
    batcher.add(_state("C"))

    assert batcher.pending_count == 2
    assert batcher.dropped == 1


@pytest.mark.anyio
async def test_discarded_updates_are_not_sent():
    recorder = Recorder()
    batcher = UpdateBatcher(recorder, flush_interval=60)

    batcher.add(_state("UAL123"))
    batcher.discard(["UAL123"])

    assert await batcher.flush_now() == 0
    assert recorder.events == []


@pytest.mark.anyio
async def test_send_failures_do_not_escape_flush():
    async def broken(event):
        raise RuntimeError("socket closed")

    batcher = UpdateBatcher(broken, flush_interval=60)
    batcher.add(_state("UAL123"))

    assert await batcher.flush_now() == 1
    assert batcher.pending_count == 0


@pytest.mark.anyio
async def test_update_added_during_a_slow_send_is_flushed():
    events = []
    batcher = None

    async def slow_send(event):
        events.append(event)
        if len(events) == 1:
            batcher.add(_state("DAL45"))
            await anyio.sleep(0.05)

    batcher = UpdateBatcher(slow_send, flush_interval=0.01)
    batcher.add(_state("UAL123"))

    with anyio.fail_after(5):
        while len(events) < 2:
            await anyio.sleep(0.01)

    assert [event["payload"]["aircraftId"] for event in events] == ["UAL123", "DAL45"]
    assert batcher.pending_count == 0
    await batcher.close()
