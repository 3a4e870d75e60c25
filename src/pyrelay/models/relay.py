"""Relay slot, relay state, telemetry and per-device state models."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from pyrelay.state.events import IngestionSource


class RelaySlot(enum.IntEnum):
    """One of the four fixed outlet positions on a device."""

    RELAY1 = 1
    RELAY2 = 2
    RELAY3 = 3
    RELAY4 = 4

    @property
    def key(self) -> str:
        """Wire name of the slot (``"relay1"`` .. ``"relay4"``)."""
        return f"relay{self.value}"

    @classmethod
    def coerce(cls, value: Any) -> RelaySlot | None:
        """Map ``RelaySlot``, ``1``..``4``, ``"3"`` or ``"relay3"`` to a slot.

        Returns ``None`` for anything else.
        """
        if isinstance(value, RelaySlot):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            index: int | None = value
        elif isinstance(value, str):
            text = value.strip().lower().removeprefix("relay")
            index = int(text) if text.isdigit() else None
        else:
            index = None
        if index is None:
            return None
        try:
            return cls(index)
        except ValueError:
            return None

    @classmethod
    def parse(cls, value: Any) -> RelaySlot:
        """Strict variant of :meth:`coerce`."""
        slot = cls.coerce(value)
        if slot is None:
            raise ValueError(f"relay slot must be 1..4 or relay1..relay4, got {value!r}")
        return slot


class RelayState(BaseModel):
    """Whether a relay is energized."""

    model_config = ConfigDict(frozen=True)

    on: bool = False


class RelayTelemetry(BaseModel):
    """Power/energy readings for one relay.

    A fresh snapshot is taken on every focus poll; telemetry is never merged
    field by field.
    """

    model_config = ConfigDict(frozen=True)

    power_rating_watts: float = Field(default=0.0, ge=0)
    energy_wh: float = Field(default=0.0, ge=0)
    cumulative_energy_wh: float = Field(default=0.0, ge=0)
    price_per_kwh: float = Field(default=0.0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cost(self) -> float:
        """Cost of the cumulative energy (Wh converted to kWh)."""
        return compute_cost(self.cumulative_energy_wh, self.price_per_kwh)


def compute_cost(cumulative_energy_wh: float, price_per_kwh: float) -> float:
    """Cost of *cumulative_energy_wh* at *price_per_kwh* (price is per kWh)."""
    return cumulative_energy_wh * (price_per_kwh / 1000.0)


def _all_off() -> dict[RelaySlot, RelayState]:
    return {slot: RelayState() for slot in RelaySlot}


class DeviceState(BaseModel):
    """Canonical in-memory state of one device.

    ``relays`` always holds all four slots. ``telemetry`` is only populated
    while (or after) the device is focused.
    """

    model_config = ConfigDict(extra="forbid")

    relays: dict[RelaySlot, RelayState] = Field(default_factory=_all_off)
    telemetry: dict[RelaySlot, RelayTelemetry] = Field(default_factory=dict)
    relays_source: IngestionSource | None = None
    relays_updated_at: datetime | None = None
    telemetry_source: IngestionSource | None = None
    telemetry_updated_at: datetime | None = None

    @model_validator(mode="after")
    def _fill_missing_slots(self) -> DeviceState:
        for slot in RelaySlot:
            self.relays.setdefault(slot, RelayState())
        return self

    def is_on(self, slot: RelaySlot | int | str) -> bool:
        return self.relays[RelaySlot.parse(slot)].on

    def relay_flags(self) -> dict[RelaySlot, bool]:
        return {slot: self.relays[slot].on for slot in RelaySlot}

    def telemetry_for(self, slot: RelaySlot | int | str) -> RelayTelemetry:
        """Telemetry for *slot*, or zeros when none has been fetched."""
        return self.telemetry.get(RelaySlot.parse(slot), RelayTelemetry())
