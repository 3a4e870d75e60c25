"""pyrelay - Async polling and control engine for networked 4-relay devices."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyrelay")
except PackageNotFoundError:
    __version__ = "0+local"
from pyrelay.client import RelayClient
from pyrelay.config import RelayConfig
from pyrelay.control import ControlCoordinator
from pyrelay.exceptions import (
    RelayApiError,
    RelayAuthenticationError,
    RelayConfigError,
    RelayError,
    RelayShapeError,
    RelayTransportError,
)
from pyrelay.models import (
    BulkCommandResult,
    Device,
    DeviceState,
    ElectricityRate,
    RelayCommandResult,
    RelaySlot,
    RelayState,
    RelayTelemetry,
)
from pyrelay.polling import FleetPoller, FocusPoller, Poller
from pyrelay.state.events import IngestionSource
from pyrelay.state.store import StateStore

__all__ = [
    "__version__",
    "BulkCommandResult",
    "ControlCoordinator",
    "Device",
    "DeviceState",
    "ElectricityRate",
    "FleetPoller",
    "FocusPoller",
    "IngestionSource",
    "Poller",
    "RelayApiError",
    "RelayAuthenticationError",
    "RelayClient",
    "RelayCommandResult",
    "RelayConfig",
    "RelayConfigError",
    "RelayError",
    "RelaySlot",
    "RelayShapeError",
    "RelayState",
    "RelayTelemetry",
    "RelayTransportError",
    "StateStore",
]
