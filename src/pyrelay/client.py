"""High-level async client for the relay backend."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from pyrelay._api import devices as _devices_api
from pyrelay._api import power as _power_api
from pyrelay._transport import HttpTransport, Transport
from pyrelay.config import RelayConfig
from pyrelay.control import ControlCoordinator
from pyrelay.exceptions import RelayError
from pyrelay.models.control import BulkCommandResult, RelayCommandResult
from pyrelay.models.device import Device
from pyrelay.models.rate import ElectricityRate
from pyrelay.models.relay import DeviceState, RelaySlot
from pyrelay.polling.fleet import FleetPoller
from pyrelay.polling.focus import FocusPoller
from pyrelay.polling.poller import ErrorHook, Poller
from pyrelay.state.store import StateListener, StateStore

_logger = logging.getLogger(__name__)


class RelayClient:
    """Async client and session context for a fleet of relay devices.

    The client owns everything with session lifetime: the transport, the
    state store, the electricity rate, the device list, both pollers and the
    control coordinator. Entering the context starts the session; leaving it
    (or :meth:`close`) stops all polling and drops the state.

    Usage::

        async with RelayClient(config, on_state_changed=render) as client:
            await client.refresh_devices()          # starts fleet polling
            await client.focus_device("esp-01")     # starts telemetry polling
            result = await client.set_relay("esp-01", 2, True)
    """

    def __init__(
        self,
        config: RelayConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        on_state_changed: StateListener | None = None,
        on_poll_error: ErrorHook | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = None
        self._on_poll_error = on_poll_error
        self._store = StateStore(on_change=on_state_changed)
        self._rate = ElectricityRate(
            rate_per_unit=config.default_rate_per_unit,
            currency=config.default_currency,
        )
        self._devices: list[Device] = []
        self._poller: Poller | None = None
        self._fleet: FleetPoller | None = None
        self._focus: FocusPoller | None = None
        self._control: ControlCoordinator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RelayClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        transport = HttpTransport(self._config, self._http_session)
        self._transport = transport
        self._poller = Poller(on_error=self._on_poll_error)
        self._fleet = FleetPoller(
            self._poller,
            transport,
            self._store,
            interval=self._config.fleet_poll_interval,
        )
        self._focus = FocusPoller(
            self._poller,
            transport,
            self._store,
            interval=self._config.focus_poll_interval,
            fallback_price=lambda: self._rate.rate_per_unit,
        )
        self._control = ControlCoordinator(transport, self._store)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Tear the session down: stop polling, forget state, close HTTP."""
        if self._poller is not None:
            await self._poller.aclose()
        self._poller = None
        self._fleet = None
        self._focus = None
        self._control = None
        self._transport = None
        self._devices = []
        self._store.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise RelayError("Client not initialized. Use 'async with RelayClient(...) as client:'")
        return self._transport

    def _require_fleet(self) -> FleetPoller:
        self._require_transport()
        assert self._fleet is not None  # noqa: S101
        return self._fleet

    def _require_focus(self) -> FocusPoller:
        self._require_transport()
        assert self._focus is not None  # noqa: S101
        return self._focus

    def _require_control(self) -> ControlCoordinator:
        self._require_transport()
        assert self._control is not None  # noqa: S101
        return self._control

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def devices(self) -> list[Device]:
        return list(self._devices)

    @property
    def rate(self) -> ElectricityRate:
        return self._rate

    @property
    def focused_device_id(self) -> str | None:
        return self._focus.focused_device_id if self._focus is not None else None

    def get_device_state(self, device_id: str) -> DeviceState | None:
        """Snapshot of one device's state (a copy; mutating it has no effect)."""
        return self._store.get_device(device_id)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Observe ``listener(device_id)`` after every state change."""
        return self._store.subscribe(listener)

    # ------------------------------------------------------------------
    # Devices and fleet polling
    # ------------------------------------------------------------------

    async def refresh_devices(self) -> list[Device]:
        """Reload the device list and restart fleet polling with it.

        On failure fleet polling is stopped, so no stale device keeps being
        polled, and the error propagates.
        """
        transport = self._require_transport()
        fleet = self._require_fleet()
        try:
            devices = await _devices_api.fetch_devices(transport)
        except RelayError:
            fleet.stop()
            raise
        self._devices = devices
        fleet.start(device.device_id for device in devices)
        _logger.debug("Loaded %d device(s)", len(devices))
        return list(devices)

    def start_fleet_polling(self, device_ids: list[str] | tuple[str, ...] | None = None) -> None:
        """(Re)start fleet polling, by default for the last loaded device list."""
        ids = device_ids if device_ids is not None else [device.device_id for device in self._devices]
        self._require_fleet().start(ids)

    def stop_fleet_polling(self) -> None:
        self._require_fleet().stop()

    async def add_device(self, *, name: str, device_id: str, ssid: str = "", password: str = "") -> list[Device]:
        """Register a device, then reload the device list."""
        if not name.strip() or not device_id.strip():
            raise ValueError("Device name and id are required")
        await _devices_api.add_device(
            self._require_transport(),
            name=name.strip(),
            device_id=device_id.strip(),
            ssid=ssid,
            password=password,
        )
        return await self.refresh_devices()

    async def delete_device(self, device_id: str) -> list[Device]:
        """Delete a device, forget its state and reload the device list."""
        transport = self._require_transport()
        if self.focused_device_id == device_id:
            self.clear_focus()
        await _devices_api.delete_device(transport, device_id)
        self._store.remove_device(device_id)
        self._devices = [device for device in self._devices if device.device_id != device_id]
        # The deleted id must not be polled while the list reloads.
        self._require_fleet().start(device.device_id for device in self._devices)
        return await self.refresh_devices()

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    async def focus_device(self, device_id: str) -> None:
        """Open *device_id* for control: start its telemetry polling.

        The electricity rate is refreshed alongside (best-effort) since it is
        the fallback price for the cost readings.
        """
        self._require_focus().focus(device_id)
        try:
            await self.refresh_rate()
        except RelayError:
            _logger.debug("Rate refresh on focus failed; keeping %s", self._rate, exc_info=True)

    def clear_focus(self) -> str | None:
        """Close the control view: stop telemetry polling immediately."""
        if self._focus is None:
            return None
        return self._focus.clear()

    # ------------------------------------------------------------------
    # Rate and power configuration
    # ------------------------------------------------------------------

    async def refresh_rate(self) -> ElectricityRate:
        """Fetch the current electricity rate. On failure the old rate is kept."""
        self._rate = await _power_api.fetch_current_rate(self._require_transport(), self._rate)
        return self._rate

    async def configure_power_ratings(
        self,
        device_id: str,
        ratings: Mapping[RelaySlot | int | str, float],
    ) -> dict[str, Any]:
        """Send nominal power ratings (watts) for some relays of *device_id*."""
        parsed: dict[RelaySlot, float] = {}
        for slot, watts in ratings.items():
            value = float(watts)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"power rating for {slot!r} must be a finite number >= 0, got {watts!r}")
            parsed[RelaySlot.parse(slot)] = value
        if not parsed:
            raise ValueError("At least one power rating is required")
        return await _power_api.configure_power_ratings(self._require_transport(), device_id, parsed)

    # ------------------------------------------------------------------
    # Control commands
    # ------------------------------------------------------------------

    async def set_relay(self, device_id: str, slot: RelaySlot | int | str, desired_on: bool) -> RelayCommandResult:
        """Switch one relay; see :meth:`ControlCoordinator.set_relay`."""
        return await self._require_control().set_relay(device_id, slot, desired_on)

    async def set_all_relays(self, device_id: str, desired_on: bool) -> BulkCommandResult:
        """Switch all relays; see :meth:`ControlCoordinator.set_all_relays`."""
        return await self._require_control().set_all_relays(device_id, desired_on)
