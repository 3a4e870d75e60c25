"""Relay command execution.

The coordinator only writes confirmed state: the store changes after the
backend accepted a command, never before. It keeps no optimistic state of its
own; a view that flips a toggle early owns the revert.
"""

from __future__ import annotations

import asyncio
import logging

from pyrelay._api.devices import send_relay_command
from pyrelay._transport import Transport
from pyrelay.exceptions import RelayError
from pyrelay.ingestion.normalize import confirmed_relay_state
from pyrelay.models.control import BulkCommandResult, RelayCommand, RelayCommandResult
from pyrelay.models.relay import RelaySlot
from pyrelay.state.events import IngestionSource
from pyrelay.state.store import StateStore

_logger = logging.getLogger(__name__)


class ControlCoordinator:
    """Send relay commands and merge confirmed results into the store."""

    def __init__(self, transport: Transport, store: StateStore) -> None:
        self._transport = transport
        self._store = store

    async def set_relay(self, device_id: str, slot: RelaySlot | int | str, desired_on: bool) -> RelayCommandResult:
        """Switch one relay.

        Failures come back as ``success=False`` results rather than
        exceptions; the store is left untouched in that case.
        """
        result = await self._dispatch(device_id, RelaySlot.parse(slot), desired_on)
        if result.success and result.confirmed_on is not None:
            self._store.merge_relay_booleans(
                device_id,
                {result.slot: result.confirmed_on},
                source=IngestionSource.CONTROL,
            )
        return result

    async def set_all_relays(self, device_id: str, desired_on: bool) -> BulkCommandResult:
        """Switch all four relays concurrently.

        The store is only updated when every command succeeded. On partial
        failure nothing is merged; the caller must re-fetch to learn which
        relays actually switched.
        """
        results = await asyncio.gather(*(self._dispatch(device_id, slot, desired_on) for slot in RelaySlot))
        bulk = BulkCommandResult(device_id=device_id, requested_on=desired_on, results=tuple(results))
        if not bulk.success:
            _logger.debug(
                "Bulk relay command on device=%s failed for slots=%s",
                device_id,
                [slot.key for slot in bulk.failed_slots],
            )
            return bulk

        self._store.merge_relay_booleans(
            device_id,
            {result.slot: result.confirmed_on for result in results if result.confirmed_on is not None},
            source=IngestionSource.CONTROL,
        )
        return bulk

    async def _dispatch(self, device_id: str, slot: RelaySlot, desired_on: bool) -> RelayCommandResult:
        command = RelayCommand(relay=slot, state=desired_on)
        try:
            response = await send_relay_command(self._transport, device_id, command)
        except RelayError as exc:
            _logger.debug("Relay command %s=%s on device=%s failed", slot.key, desired_on, device_id, exc_info=True)
            return RelayCommandResult(
                device_id=device_id,
                slot=slot,
                requested_on=desired_on,
                success=False,
                error=str(exc),
            )
        return RelayCommandResult(
            device_id=device_id,
            slot=slot,
            requested_on=desired_on,
            success=True,
            confirmed_on=confirmed_relay_state(response, slot, desired_on),
            raw=response,
        )
