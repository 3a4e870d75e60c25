"""Fleet polling: relay on/off flags for every device in the list."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from pyrelay._api.devices import fetch_device_status
from pyrelay._constants import DEFAULT_FLEET_POLL_INTERVAL, FLEET_POLLER
from pyrelay._transport import Transport
from pyrelay.ingestion.normalize import extract_reported_relays
from pyrelay.polling.poller import Poller
from pyrelay.state.events import IngestionSource
from pyrelay.state.store import StateStore

_logger = logging.getLogger(__name__)


class FleetPoller:
    """Refresh the relay flags of a fixed device list on a fixed cadence.

    Devices are fetched concurrently within a tick; one device failing does
    not affect the others. Restarting with a new list always cancels the old
    schedule first, so removed devices stop being polled.
    """

    def __init__(
        self,
        poller: Poller,
        transport: Transport,
        store: StateStore,
        *,
        interval: float = DEFAULT_FLEET_POLL_INTERVAL,
        name: str = FLEET_POLLER,
    ) -> None:
        self._poller = poller
        self._transport = transport
        self._store = store
        self._interval = interval
        self._name = name
        self._device_ids: tuple[str, ...] = ()

    @property
    def device_ids(self) -> tuple[str, ...]:
        return self._device_ids

    @property
    def is_running(self) -> bool:
        return self._poller.is_running(self._name)

    def start(self, device_ids: Iterable[str]) -> None:
        """Poll *device_ids* from now on. An empty list only stops polling."""
        self.stop()
        ids = tuple(dict.fromkeys(device_id for device_id in device_ids if device_id))
        if not ids:
            _logger.debug("Fleet polling not started: no devices")
            return
        self._device_ids = ids

        async def _tick() -> None:
            await self._poll_devices(ids)

        self._poller.start(self._name, self._interval, _tick)

    def stop(self) -> None:
        self._poller.stop(self._name)
        self._device_ids = ()

    async def poll_once(self) -> None:
        """Run one fleet refresh outside the schedule."""
        await self._poll_devices(self._device_ids)

    async def _poll_devices(self, device_ids: tuple[str, ...]) -> None:
        await asyncio.gather(*(self._poll_device(device_id) for device_id in device_ids))

    async def _poll_device(self, device_id: str) -> None:
        try:
            payload = await fetch_device_status(self._transport, device_id)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.debug("Fleet poll failed for device=%s", device_id, exc_info=True)
            self._poller.report_error(f"{self._name}:{device_id}", exc)
            return

        # A late answer for a device that was deleted meanwhile must not recreate it.
        if device_id not in self._device_ids and device_id not in self._store:
            _logger.debug("Dropping late fleet status for removed device=%s", device_id)
            return

        self._store.merge_relay_booleans(
            device_id,
            extract_reported_relays(payload),
            source=IngestionSource.FLEET,
        )
