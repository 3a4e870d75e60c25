"""Electricity rate model."""

from __future__ import annotations

from pydantic import Field

from pyrelay.models._base import RelayBaseModel


class ElectricityRate(RelayBaseModel):
    """Price per kWh, used as a fallback when relay telemetry carries no price.

    Mapped from the ``rate`` object of ``GET /power/rate/current``.
    """

    rate_per_unit: float = Field(gt=0)
    currency: str = "INR"
