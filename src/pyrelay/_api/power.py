"""Electricity rate and power rating endpoints."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from pyrelay._api._common import raise_for_failure, require_object
from pyrelay._transport import Transport
from pyrelay.exceptions import RelayShapeError
from pyrelay.ingestion.normalize import non_negative
from pyrelay.models.rate import ElectricityRate
from pyrelay.models.relay import RelaySlot


async def fetch_current_rate(transport: Transport, current: ElectricityRate) -> ElectricityRate:
    """Fetch the account's electricity rate.

    Fields the backend omits (or sends as invalid values) keep the values of
    *current*.
    """
    endpoint = "/power/rate/current"
    decoded = require_object(endpoint, await transport.request_json("GET", endpoint))
    rate = decoded.get("rate")
    if not isinstance(rate, dict):
        raise RelayShapeError(f"{endpoint} response has no rate object", endpoint=endpoint)

    rate_per_unit = non_negative(rate.get("ratePerUnit"))
    currency = rate.get("currency")
    try:
        return ElectricityRate(
            rate_per_unit=rate_per_unit if rate_per_unit else current.rate_per_unit,
            currency=currency if isinstance(currency, str) and currency else current.currency,
            raw=rate,
        )
    except ValidationError as exc:
        raise RelayShapeError(f"{endpoint} returned an invalid rate: {exc}", endpoint=endpoint) from exc


async def configure_power_ratings(
    transport: Transport,
    device_id: str,
    ratings: Mapping[RelaySlot, float],
) -> dict[str, Any]:
    """Send the nominal power rating (watts) of each listed relay."""
    endpoint = "/power/configure"
    payload = {
        "deviceId": device_id,
        "powerConfig": [
            {"relay": slot.key, "powerRating": watts} for slot, watts in sorted(ratings.items())
        ],
    }
    decoded = await transport.request_json("POST", endpoint, payload)
    return raise_for_failure(endpoint, decoded) if isinstance(decoded, dict) else {}
