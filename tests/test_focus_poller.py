from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from conftest import FakeTransport
from pyrelay.exceptions import RelayShapeError
from pyrelay.models.relay import RelaySlot
from pyrelay.polling.focus import FocusPoller
from pyrelay.polling.poller import Poller
from pyrelay.state.events import IngestionSource
from pyrelay.state.store import StateStore

STATUS_A = ("GET", "/devices/esp-a/status")
STATUS_B = ("GET", "/devices/esp-b/status")

POWER_INFO = {
    "relays": {"relay1": True},
    "powerInfo": {
        "relay1": {"powerRating": 100, "energyConsumed": 50, "cumulativeEnergy": 1500, "pricePerKWh": 8},
        "relay2": {"powerRating": 60, "cumulativeEnergy": 1000},
    },
}


def _focus(transport: FakeTransport, poller: Poller, store: StateStore, interval: float = 60.0) -> FocusPoller:
    return FocusPoller(poller, transport, store, interval=interval, fallback_price=lambda: 6.0)


@pytest.mark.asyncio
async def test_focus_replaces_telemetry_for_all_relays(transport: FakeTransport) -> None:
    transport.route(*STATUS_A, POWER_INFO)
    poller, store = Poller(), StateStore()
    focus = _focus(transport, poller, store)

    focus.focus("esp-a")
    await asyncio.sleep(0.02)

    state = store.get_device("esp-a")
    assert state is not None
    assert set(state.telemetry) == set(RelaySlot)
    assert state.telemetry_source == IngestionSource.FOCUS
    assert state.telemetry_for(1).cost == pytest.approx(12.0)
    assert state.telemetry_for(2).price_per_kwh == 6.0
    assert state.telemetry_for(2).cost == pytest.approx(6.0)
    assert state.telemetry_for(4).power_rating_watts == 0.0
    await poller.aclose()


@pytest.mark.asyncio
async def test_focus_loads_reported_relay_flags_once(transport: FakeTransport) -> None:
    transport.route(*STATUS_A, {"relays": {"relay1": True}, "powerInfo": {"relay2": {"isActive": True}}})
    poller, store = Poller(), StateStore()
    focus = _focus(transport, poller, store)

    focus.focus("esp-a")
    await asyncio.sleep(0.02)

    assert store.relay_flags("esp-a")[RelaySlot.RELAY1] is True
    assert store.relay_flags("esp-a")[RelaySlot.RELAY2] is False
    state = store.get_device("esp-a")
    assert state is not None and state.relays_source == IngestionSource.FOCUS

    store.merge_relay_booleans("esp-a", {1: False}, source=IngestionSource.FLEET)
    await focus.poll_device("esp-a")

    assert store.relay_flags("esp-a")[RelaySlot.RELAY1] is False
    await poller.aclose()


@pytest.mark.asyncio
async def test_focus_loads_relay_flags_from_power_info(transport: FakeTransport) -> None:
    transport.route(
        *STATUS_A,
        {"state": {"powerInfo": {"relay2": {"isActive": True, "powerRating": 60}, "relay3": {"isOn": False}}}},
    )
    poller, store = Poller(), StateStore()
    store.merge_relay_booleans("esp-a", {3: True, 4: True})
    focus = _focus(transport, poller, store)

    focus.focus("esp-a")
    await asyncio.sleep(0.02)

    assert store.relay_flags("esp-a") == {
        RelaySlot.RELAY1: False,
        RelaySlot.RELAY2: True,
        RelaySlot.RELAY3: False,
        RelaySlot.RELAY4: True,
    }
    await poller.aclose()


@pytest.mark.asyncio
async def test_late_status_for_removed_device_is_discarded(transport: FakeTransport) -> None:
    release = asyncio.Event()

    async def _slow_status(_payload: object) -> dict[str, object]:
        await release.wait()
        return POWER_INFO

    transport.route(*STATUS_A, _slow_status)
    poller, store = Poller(), StateStore()
    store.merge_relay_booleans("esp-a", {1: True})
    focus = _focus(transport, poller, store)

    focus.focus("esp-a")
    await asyncio.sleep(0.02)
    focus.clear()
    store.remove_device("esp-a")
    release.set()
    await asyncio.sleep(0.02)

    assert "esp-a" not in store
    await poller.aclose()


@pytest.mark.asyncio
async def test_late_status_after_focus_moved_is_still_applied(transport: FakeTransport) -> None:
    release = asyncio.Event()

    async def _slow_status(_payload: object) -> dict[str, object]:
        await release.wait()
        return POWER_INFO

    transport.route(*STATUS_A, _slow_status)
    transport.route(*STATUS_B, {})
    poller, store = Poller(), StateStore()
    store.merge_relay_booleans("esp-a", {})
    focus = _focus(transport, poller, store)

    focus.focus("esp-a")
    await asyncio.sleep(0.02)
    focus.focus("esp-b")
    release.set()
    await asyncio.sleep(0.02)

    state = store.get_device("esp-a")
    assert state is not None
    assert state.telemetry_for(1).power_rating_watts == 100.0
    await poller.aclose()


@pytest.mark.asyncio
async def test_switching_focus_keeps_a_single_schedule(transport: FakeTransport) -> None:
    transport.route(*STATUS_A, POWER_INFO)
    transport.route(*STATUS_B, POWER_INFO)
    poller, store = Poller(), StateStore()
    focus = _focus(transport, poller, store)

    focus.focus("esp-a")
    focus.focus("esp-b")
    await asyncio.sleep(0.02)

    assert focus.focused_device_id == "esp-b"
    assert poller.names == frozenset({"focus"})
    assert transport.count(*STATUS_A) == 0
    assert transport.count(*STATUS_B) == 1
    await poller.aclose()


@pytest.mark.asyncio
async def test_clear_stops_polling_and_keeps_telemetry(transport: FakeTransport) -> None:
    transport.route(*STATUS_A, POWER_INFO)
    poller, store = Poller(), StateStore()
    focus = _focus(transport, poller, store, interval=0.03)

    focus.focus("esp-a")
    await asyncio.sleep(0.01)

    assert focus.clear() == "esp-a"
    calls = transport.count(*STATUS_A)
    await asyncio.sleep(0.1)

    assert focus.focused_device_id is None
    assert not poller.is_running("focus")
    assert transport.count(*STATUS_A) == calls
    state = store.get_device("esp-a")
    assert state is not None
    assert state.telemetry_for(1).power_rating_watts == 100.0
    await poller.aclose()


def test_clear_without_focus_is_a_noop(transport: FakeTransport) -> None:
    poller, store = Poller(), StateStore()
    focus = _focus(transport, poller, store)

    assert focus.clear() is None


def test_focus_rejects_empty_device_id(transport: FakeTransport) -> None:
    focus = _focus(transport, Poller(), StateStore())

    with pytest.raises(ValueError):
        focus.focus("")


@pytest.mark.asyncio
async def test_poll_failure_is_reported_under_focus_name(
    transport: FakeTransport,
    errors: list[tuple[str, BaseException]],
    on_error: Callable[[str, BaseException], None],
) -> None:
    transport.route(*STATUS_A, ["not", "an", "object"])
    poller, store = Poller(on_error=on_error), StateStore()
    focus = _focus(transport, poller, store)

    focus.focus("esp-a")
    await asyncio.sleep(0.02)

    assert "esp-a" not in store
    assert len(errors) == 1
    assert errors[0][0] == "focus"
    assert isinstance(errors[0][1], RelayShapeError)
    assert poller.is_running("focus")
    await poller.aclose()
