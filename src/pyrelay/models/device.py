"""Device list models."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from pyrelay.models._base import RelayBaseModel


class Device(RelayBaseModel):
    """A device registered to the account.

    Fields are mapped from ``GET /devices``.
    """

    device_id: str = Field(validation_alias=AliasChoices("deviceId", "device_id", "id"))
    """Backend-assigned identifier, used in every device request."""
    name: str = ""
    """User-chosen display name."""
    status: str = "offline"
    """Connectivity status reported by the backend (``"online"``/``"offline"``)."""

    @field_validator("device_id")
    @classmethod
    def _device_id_non_empty(cls, value: str) -> str:
        device_id = value.strip()
        if not device_id:
            raise ValueError("deviceId must be non-empty")
        return device_id

    @property
    def is_online(self) -> bool:
        return self.status == "online"


class DeviceList(RelayBaseModel):
    """Envelope returned by ``GET /devices``."""

    devices: list[Device] = Field(default_factory=list)
