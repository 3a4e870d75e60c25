"""Focus polling: detailed per-relay telemetry for the one open device."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pyrelay._api.devices import fetch_device_status
from pyrelay._constants import DEFAULT_FOCUS_POLL_INTERVAL, FOCUS_POLLER
from pyrelay._transport import Transport
from pyrelay.ingestion.normalize import extract_focus_relays, extract_telemetry
from pyrelay.polling.poller import Poller
from pyrelay.state.events import IngestionSource
from pyrelay.state.store import StateStore

_logger = logging.getLogger(__name__)


class FocusPoller:
    """Poll telemetry for at most one focused device.

    Focusing another device stops the current schedule before the new one
    starts. The first successful poll after focusing also loads the relay
    flags the status reports; later polls only replace telemetry. Clearing
    focus stops polling but keeps the last telemetry in the store. A response
    that arrives after focus moved on is still applied, unless the device has
    been removed from the store meanwhile.
    """

    def __init__(
        self,
        poller: Poller,
        transport: Transport,
        store: StateStore,
        *,
        fallback_price: Callable[[], float],
        interval: float = DEFAULT_FOCUS_POLL_INTERVAL,
        name: str = FOCUS_POLLER,
    ) -> None:
        self._poller = poller
        self._transport = transport
        self._store = store
        self._fallback_price = fallback_price
        self._interval = interval
        self._name = name
        self._focused: str | None = None

    @property
    def focused_device_id(self) -> str | None:
        return self._focused

    def focus(self, device_id: str) -> None:
        """Start telemetry polling for *device_id*, replacing any previous focus."""
        if not device_id:
            raise ValueError("device_id must be non-empty")
        self.clear()
        self._focused = device_id

        relays_loaded = False

        async def _tick() -> None:
            nonlocal relays_loaded
            await self.poll_device(device_id, load_relays=not relays_loaded)
            relays_loaded = True

        self._poller.start(self._name, self._interval, _tick)
        _logger.debug("Focus moved to device=%s", device_id)

    def clear(self) -> str | None:
        """Stop focus polling. Returns the previously focused device id."""
        previous = self._focused
        self._poller.stop(self._name)
        self._focused = None
        return previous

    async def poll_device(self, device_id: str, *, load_relays: bool = False) -> None:
        """Fetch *device_id*'s status and replace its telemetry for all four relays.

        With *load_relays* the reported relay flags are merged first.
        """
        payload = await fetch_device_status(self._transport, device_id)
        if device_id != self._focused and device_id not in self._store:
            _logger.debug("Dropping late focus status for removed device=%s", device_id)
            return
        if load_relays:
            self._store.merge_relay_booleans(
                device_id,
                extract_focus_relays(payload),
                source=IngestionSource.FOCUS,
            )
        telemetry = extract_telemetry(payload, self._fallback_price())
        self._store.replace_device_telemetry(device_id, telemetry, source=IngestionSource.FOCUS)
