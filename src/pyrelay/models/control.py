"""Relay command request and outcome models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer

from pyrelay.models.relay import RelaySlot


class RelayCommand(BaseModel):
    """Body of ``POST /devices/{id}/control``."""

    model_config = ConfigDict(frozen=True)

    relay: RelaySlot
    state: bool

    @field_serializer("relay")
    def _serialize_relay(self, relay: RelaySlot) -> str:
        return relay.key


class RelayCommandResult(BaseModel):
    """Outcome of one relay command.

    ``confirmed_on`` is only set on success; a failed command leaves the
    state store untouched and the caller decides how to revert its UI.
    """

    model_config = ConfigDict(frozen=True)

    device_id: str
    slot: RelaySlot
    requested_on: bool
    success: bool
    confirmed_on: bool | None = None
    error: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)


class BulkCommandResult(BaseModel):
    """Outcome of switching all four relays of a device at once."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    requested_on: bool
    results: tuple[RelayCommandResult, ...]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return bool(self.results) and all(result.success for result in self.results)

    @property
    def failed_slots(self) -> tuple[RelaySlot, ...]:
        return tuple(result.slot for result in self.results if not result.success)
