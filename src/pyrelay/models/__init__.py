"""Data models for relay backend payloads and engine state."""

from pyrelay.models._base import RelayBaseModel
from pyrelay.models.control import BulkCommandResult, RelayCommand, RelayCommandResult
from pyrelay.models.device import Device, DeviceList
from pyrelay.models.rate import ElectricityRate
from pyrelay.models.relay import DeviceState, RelaySlot, RelayState, RelayTelemetry, compute_cost
from pyrelay.models.status import (
    NestedStateRelays,
    NoRelays,
    RawStateRelays,
    StatusRelays,
    TopLevelRelays,
    parse_status_relays,
)

__all__ = [
    "BulkCommandResult",
    "Device",
    "DeviceList",
    "DeviceState",
    "ElectricityRate",
    "NestedStateRelays",
    "NoRelays",
    "RawStateRelays",
    "RelayBaseModel",
    "RelayCommand",
    "RelayCommandResult",
    "RelaySlot",
    "RelayState",
    "RelayTelemetry",
    "StatusRelays",
    "TopLevelRelays",
    "compute_cost",
    "parse_status_relays",
]
