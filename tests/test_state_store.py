from __future__ import annotations

from datetime import UTC, datetime

from pyrelay.models.relay import RelaySlot, RelayState, RelayTelemetry
from pyrelay.state.events import IngestionSource
from pyrelay.state.store import StateStore


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def _store(notified: list[str] | None = None) -> StateStore:
    return StateStore(on_change=notified.append if notified is not None else None, clock=_dt)


def test_unknown_device_reads_as_absent_and_all_off() -> None:
    store = _store()

    assert store.get_device("esp-01") is None
    assert store.relay_flags("esp-01") == {slot: False for slot in RelaySlot}
    assert "esp-01" not in store


def test_partial_merge_only_touches_reported_slots() -> None:
    store = _store()
    store.merge_relay_booleans("esp-01", {1: True, 2: True, 3: True, 4: True})

    store.merge_relay_booleans("esp-01", {RelaySlot.RELAY1: False, "relay3": False})

    assert store.relay_flags("esp-01") == {
        RelaySlot.RELAY1: False,
        RelaySlot.RELAY2: True,
        RelaySlot.RELAY3: False,
        RelaySlot.RELAY4: True,
    }


def test_merge_creates_missing_device_with_all_slots() -> None:
    store = _store()

    store.merge_relay_booleans("esp-01", {"relay2": True})

    state = store.get_device("esp-01")
    assert state is not None
    assert set(state.relays) == set(RelaySlot)
    assert state.is_on(2)
    assert not state.is_on("relay1")


def test_merge_notifies_exactly_once() -> None:
    notified: list[str] = []
    store = _store(notified)

    store.merge_relay_booleans("esp-01", {1: True, 2: False, 3: True, 4: False})
    store.merge_relay_booleans("esp-01", {})

    assert notified == ["esp-01", "esp-01"]


def test_merge_accepts_relay_objects_and_skips_unknown_keys() -> None:
    store = _store()

    store.merge_relay_booleans("esp-01", {"relay1": {"isOn": True}, "relay9": True, "mode": "auto"})

    assert store.relay_flags("esp-01")[RelaySlot.RELAY1] is True
    assert sum(store.relay_flags("esp-01").values()) == 1


def test_merge_records_provenance() -> None:
    store = _store()

    store.merge_relay_booleans("esp-01", {1: True}, source=IngestionSource.CONTROL)

    state = store.get_device("esp-01")
    assert state is not None
    assert state.relays_source == IngestionSource.CONTROL
    assert state.relays_updated_at == _dt()
    assert state.telemetry_updated_at is None


def test_get_device_returns_independent_copy() -> None:
    store = _store()
    store.merge_relay_booleans("esp-01", {1: False})

    snapshot = store.get_device("esp-01")
    assert snapshot is not None
    snapshot.relays[RelaySlot.RELAY1] = RelayState(on=True)
    snapshot.telemetry[RelaySlot.RELAY1] = RelayTelemetry(power_rating_watts=10)

    fresh = store.get_device("esp-01")
    assert fresh is not None
    assert not fresh.is_on(1)
    assert fresh.telemetry == {}


def test_replace_device_telemetry_is_a_snapshot_per_relay() -> None:
    notified: list[str] = []
    store = _store(notified)
    store.replace_telemetry("esp-01", "relay1", RelayTelemetry(power_rating_watts=100, energy_wh=5))

    store.replace_device_telemetry("esp-01", {RelaySlot.RELAY1: RelayTelemetry(power_rating_watts=60)})

    state = store.get_device("esp-01")
    assert state is not None
    assert state.telemetry_for(1) == RelayTelemetry(power_rating_watts=60)
    assert state.telemetry_for(2) == RelayTelemetry()
    assert state.telemetry_updated_at == _dt()
    assert notified == ["esp-01", "esp-01"]


def test_telemetry_does_not_touch_relay_flags() -> None:
    store = _store()
    store.merge_relay_booleans("esp-01", {1: True})

    store.replace_device_telemetry("esp-01", {RelaySlot.RELAY1: RelayTelemetry()})

    assert store.relay_flags("esp-01")[RelaySlot.RELAY1] is True


def test_remove_device() -> None:
    notified: list[str] = []
    store = _store(notified)
    store.merge_relay_booleans("esp-01", {1: True})

    assert store.remove_device("esp-01") is True
    assert store.remove_device("esp-01") is False
    assert store.get_device("esp-01") is None
    assert notified == ["esp-01", "esp-01"]


def test_subscribe_and_unsubscribe() -> None:
    store = _store()
    seen: list[str] = []
    unsubscribe = store.subscribe(seen.append)

    store.merge_relay_booleans("esp-01", {1: True})
    unsubscribe()
    store.merge_relay_booleans("esp-02", {1: True})

    assert seen == ["esp-01"]


def test_failing_listener_does_not_block_others_or_the_mutation() -> None:
    store = _store()
    seen: list[str] = []

    def _boom(_device_id: str) -> None:
        raise RuntimeError("listener failed")

    store.subscribe(_boom)
    store.subscribe(seen.append)

    store.merge_relay_booleans("esp-01", {1: True})

    assert seen == ["esp-01"]
    assert store.relay_flags("esp-01")[RelaySlot.RELAY1] is True


def test_listener_sees_mutation_fully_applied() -> None:
    store = _store()
    observed: list[dict[RelaySlot, bool]] = []
    store.subscribe(lambda device_id: observed.append(store.relay_flags(device_id)))

    store.merge_relay_booleans("esp-01", {1: True, 4: True})

    assert observed == [
        {RelaySlot.RELAY1: True, RelaySlot.RELAY2: False, RelaySlot.RELAY3: False, RelaySlot.RELAY4: True}
    ]


def test_clear_drops_everything() -> None:
    store = _store()
    store.merge_relay_booleans("esp-01", {1: True})
    store.merge_relay_booleans("esp-02", {1: True})

    store.clear()

    assert len(store) == 0
    assert store.device_ids == ()


def test_reads_hand_out_no_live_state() -> None:
    store = _store()
    store.merge_relay_booleans("esp-01", {1: True})

    flags = store.relay_flags("esp-01")
    flags[RelaySlot.RELAY1] = False
    store.get_device("esp-02")

    assert store.relay_flags("esp-01")[RelaySlot.RELAY1] is True
    assert "esp-02" not in store
    assert not hasattr(store, "ensure_device")
