"""Client configuration for pyrelay."""

from __future__ import annotations

import dataclasses
import math
import os
from typing import Any

from pyrelay._constants import (
    BASE_URL,
    DEFAULT_CURRENCY,
    DEFAULT_FLEET_POLL_INTERVAL,
    DEFAULT_FOCUS_POLL_INTERVAL,
    DEFAULT_RATE_PER_UNIT,
)
from pyrelay.exceptions import RelayConfigError


def _env_float(value: str, env_key: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise RelayConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class RelayConfig:
    """Client configuration.

    Parameters
    ----------
    auth_token : str
        Bearer token issued by the backend at login. Obtaining it is the
        caller's job; the client only attaches it to every request.
    base_url : str
        API base URL, without a trailing slash.
    fleet_poll_interval : float
        Seconds between two refreshes of the whole device list's relay flags.
    focus_poll_interval : float
        Seconds between two telemetry refreshes of the focused device.
    default_rate_per_unit : float
        Electricity price per kWh used until the backend reports a rate.
    default_currency : str
        Currency code paired with ``default_rate_per_unit``.
    request_timeout : float or None
        Total per-request timeout in seconds. ``None`` (the default) leaves
        requests unbounded; a hung request only delays its own poll tick.
    """

    auth_token: str
    base_url: str = BASE_URL
    fleet_poll_interval: float = DEFAULT_FLEET_POLL_INTERVAL
    focus_poll_interval: float = DEFAULT_FOCUS_POLL_INTERVAL
    default_rate_per_unit: float = DEFAULT_RATE_PER_UNIT
    default_currency: str = DEFAULT_CURRENCY
    request_timeout: float | None = None

    def __post_init__(self) -> None:
        if not self.auth_token or not self.auth_token.strip():
            raise RelayConfigError("auth_token must be non-empty")
        for name in ("fleet_poll_interval", "focus_poll_interval", "default_rate_per_unit"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise RelayConfigError(f"{name} must be > 0, got {value}")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise RelayConfigError(f"request_timeout must be > 0 or None, got {self.request_timeout}")
        # Endpoints are joined as f"{base_url}{endpoint}".
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> RelayConfig:
        """Create configuration from environment variables.

        Reads ``RELAY_AUTH_TOKEN`` and the optional ``RELAY_*`` variables
        listed below. Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        RelayConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "RELAY_AUTH_TOKEN": "auth_token",
            "RELAY_BASE_URL": "base_url",
            "RELAY_DEFAULT_CURRENCY": "default_currency",
        }
        _ENV_FLOAT_MAP = {
            "RELAY_FLEET_POLL_INTERVAL": "fleet_poll_interval",
            "RELAY_FOCUS_POLL_INTERVAL": "focus_poll_interval",
            "RELAY_DEFAULT_RATE": "default_rate_per_unit",
            "RELAY_REQUEST_TIMEOUT": "request_timeout",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(val, env_key)

        config_kwargs.update(overrides)
        if "auth_token" not in config_kwargs:
            raise RelayConfigError("RELAY_AUTH_TOKEN is not set")

        return cls(**config_kwargs)
