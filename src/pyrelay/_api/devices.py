"""Device list, status, control and management endpoints."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pyrelay._api._common import device_path, raise_for_failure, require_object
from pyrelay._transport import Transport
from pyrelay.exceptions import RelayShapeError
from pyrelay.models.control import RelayCommand
from pyrelay.models.device import Device, DeviceList

_logger = logging.getLogger(__name__)


async def fetch_devices(transport: Transport) -> list[Device]:
    """Fetch the devices registered to the account."""
    endpoint = "/devices"
    decoded = require_object(endpoint, await transport.request_json("GET", endpoint))
    try:
        return DeviceList.model_validate(decoded).devices
    except ValidationError as exc:
        raise RelayShapeError(f"{endpoint} returned a malformed device list: {exc}", endpoint=endpoint) from exc


async def fetch_device_status(transport: Transport, device_id: str) -> dict[str, Any]:
    """Fetch the raw status payload of one device.

    The payload shape varies between firmware/backend versions; interpreting
    it is left to :mod:`pyrelay.ingestion.normalize`.
    """
    endpoint = device_path(device_id, "/status")
    return require_object(endpoint, await transport.request_json("GET", endpoint))


async def send_relay_command(transport: Transport, device_id: str, command: RelayCommand) -> dict[str, Any]:
    """Switch one relay. Returns the (possibly empty) confirmation body."""
    endpoint = device_path(device_id, "/control")
    decoded = await transport.request_json("POST", endpoint, command.model_dump())
    if not isinstance(decoded, dict):
        _logger.debug("%s returned a non-object confirmation: %r", endpoint, decoded)
        return {}
    return raise_for_failure(endpoint, decoded)


async def add_device(
    transport: Transport,
    *,
    name: str,
    device_id: str,
    ssid: str = "",
    password: str = "",
) -> dict[str, Any]:
    """Register a device with the account."""
    endpoint = "/devices/add"
    payload = {"name": name, "deviceId": device_id, "ssid": ssid, "password": password}
    decoded = await transport.request_json("POST", endpoint, payload)
    return raise_for_failure(endpoint, decoded) if isinstance(decoded, dict) else {}


async def delete_device(transport: Transport, device_id: str) -> dict[str, Any]:
    """Delete a device (and its schedules) from the account."""
    endpoint = device_path(device_id)
    decoded = await transport.request_json("DELETE", endpoint)
    return raise_for_failure(endpoint, decoded) if isinstance(decoded, dict) else {}
