"""In-memory store for per-device relay state.

This is the only component allowed to mutate device state. Every mutation is
fully applied before change listeners run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from pyrelay.ingestion.normalize import coerce_relay_flag
from pyrelay.models.relay import DeviceState, RelaySlot, RelayState, RelayTelemetry
from pyrelay.state.events import IngestionSource

_logger = logging.getLogger(__name__)

StateListener = Callable[[str], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StateStore:
    """Canonical mapping from device id to :class:`DeviceState`.

    Readers get deep copies; they never hold a reference into the store.
    """

    def __init__(
        self,
        *,
        on_change: StateListener | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self._devices: dict[str, DeviceState] = {}
        self._listeners: list[StateListener] = []
        if on_change is not None:
            self._listeners.append(on_change)

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener* for ``listener(device_id)`` after each mutation.

        Returns a callable that unsubscribes it again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, device_id: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(device_id)
            except Exception:
                _logger.debug("State listener failed for device=%s", device_id, exc_info=True)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _ensure_device(self, device_id: str) -> DeviceState:
        """Return the live entry for *device_id*, creating an all-off one if needed."""
        state = self._devices.get(device_id)
        if state is None:
            state = DeviceState()
            self._devices[device_id] = state
        return state

    def merge_relay_booleans(
        self,
        device_id: str,
        partial: Mapping[Any, Any],
        *,
        source: IngestionSource = IngestionSource.FLEET,
    ) -> None:
        """Overwrite only the slots *partial* reports.

        Keys may be :class:`RelaySlot`, ``1``..``4`` or ``"relay1"``..``"relay4"``;
        values may be booleans or relay objects (see
        :func:`pyrelay.ingestion.normalize.coerce_relay_flag`). Unreported
        slots keep their value. Listeners are notified exactly once, even when
        nothing changed.
        """
        state = self._ensure_device(device_id)
        for key, value in partial.items():
            slot = RelaySlot.coerce(key)
            if slot is None:
                continue
            state.relays[slot] = RelayState(on=coerce_relay_flag(value))
        state.relays_source = source
        state.relays_updated_at = self._clock()
        self._notify(device_id)

    def replace_telemetry(
        self,
        device_id: str,
        slot: RelaySlot | int | str,
        telemetry: RelayTelemetry,
        *,
        source: IngestionSource = IngestionSource.FOCUS,
    ) -> None:
        """Replace the telemetry snapshot of one relay."""
        state = self._ensure_device(device_id)
        state.telemetry[RelaySlot.parse(slot)] = telemetry
        state.telemetry_source = source
        state.telemetry_updated_at = self._clock()
        self._notify(device_id)

    def replace_device_telemetry(
        self,
        device_id: str,
        telemetry: Mapping[RelaySlot, RelayTelemetry],
        *,
        source: IngestionSource = IngestionSource.FOCUS,
    ) -> None:
        """Replace the telemetry snapshot of several relays with one notification."""
        state = self._ensure_device(device_id)
        for slot, reading in telemetry.items():
            state.telemetry[RelaySlot.parse(slot)] = reading
        state.telemetry_source = source
        state.telemetry_updated_at = self._clock()
        self._notify(device_id)

    def remove_device(self, device_id: str) -> bool:
        """Forget *device_id*. Returns ``False`` when it was unknown."""
        if self._devices.pop(device_id, None) is None:
            return False
        self._notify(device_id)
        return True

    def clear(self) -> None:
        """Drop every device (session teardown). Listeners are not notified."""
        self._devices.clear()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_device(self, device_id: str) -> DeviceState | None:
        """Deep copy of the device state, or ``None`` if unknown."""
        state = self._devices.get(device_id)
        if state is None:
            return None
        return state.model_copy(deep=True)

    def relay_flags(self, device_id: str) -> dict[RelaySlot, bool]:
        """Current on/off map; all off for an unknown device."""
        state = self._devices.get(device_id)
        if state is None:
            return {slot: False for slot in RelaySlot}
        return state.relay_flags()

    @property
    def device_ids(self) -> tuple[str, ...]:
        return tuple(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def __len__(self) -> int:
        return len(self._devices)
