"""Accepted shapes of ``GET /devices/{id}/status`` relay payloads.

The backend has shipped three layouts for the relay map over time:

* ``{"relays": {...}}``
* ``{"state": {"relays": {...}}}``
* ``{"rawState": {"relays": {...}}}``

They are modelled as a tagged union so callers match on one variant instead
of chaining optional lookups. The first variant present (in the order above)
wins, mirroring how the backend layered them.
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, ValidationError


class _RelayContainer(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    relays: dict[str, Any]


class TopLevelRelays(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    shape: ClassVar[str] = "relays"

    relays: dict[str, Any]

    @property
    def relay_map(self) -> dict[str, Any]:
        return self.relays


class NestedStateRelays(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    shape: ClassVar[str] = "state.relays"

    state: _RelayContainer

    @property
    def relay_map(self) -> dict[str, Any]:
        return self.state.relays


class RawStateRelays(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    shape: ClassVar[str] = "rawState.relays"

    raw_state: _RelayContainer = Field(alias="rawState")

    @property
    def relay_map(self) -> dict[str, Any]:
        return self.raw_state.relays


class NoRelays(BaseModel):
    """Payload without any recognizable relay map."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    shape: ClassVar[str] = "none"

    @property
    def relay_map(self) -> dict[str, Any]:
        return {}


def _has_relay_map(container: Any) -> bool:
    return isinstance(container, dict) and isinstance(container.get("relays"), dict)


def _relay_shape(payload: Any) -> str:
    if isinstance(payload, BaseModel):
        return str(getattr(payload, "shape", NoRelays.shape))
    if not isinstance(payload, dict):
        return NoRelays.shape
    if _has_relay_map(payload):
        return TopLevelRelays.shape
    if _has_relay_map(payload.get("state")):
        return NestedStateRelays.shape
    if _has_relay_map(payload.get("rawState")):
        return RawStateRelays.shape
    return NoRelays.shape


StatusRelays = Annotated[
    Union[  # noqa: UP007
        Annotated[TopLevelRelays, Tag(TopLevelRelays.shape)],
        Annotated[NestedStateRelays, Tag(NestedStateRelays.shape)],
        Annotated[RawStateRelays, Tag(RawStateRelays.shape)],
        Annotated[NoRelays, Tag(NoRelays.shape)],
    ],
    Discriminator(_relay_shape),
]

_STATUS_RELAYS = TypeAdapter(StatusRelays)


def parse_status_relays(payload: Any) -> TopLevelRelays | NestedStateRelays | RawStateRelays | NoRelays:
    """Classify a status payload. Never raises."""
    if not isinstance(payload, dict):
        return NoRelays()
    try:
        return _STATUS_RELAYS.validate_python(payload)
    except ValidationError:
        return NoRelays()
