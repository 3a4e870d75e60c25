"""Normalization helpers.

Translates heterogeneous ``/devices/{id}/status`` payloads into the state
store's canonical relay representation. Every function here is pure and
total: malformed input degrades to defaults, nothing raises.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pyrelay.models.relay import RelaySlot, RelayTelemetry
from pyrelay.models.status import NoRelays, parse_status_relays

# Object-form relay entries carry the flag under any of these keys.
RELAY_FLAG_KEYS: tuple[str, ...] = ("state", "isOn", "isActive")


def safe_number(value: Any) -> float | None:
    """Return *value* as a finite float if it is a JSON number, else ``None``.

    Strings and booleans are not numbers here; the backend sends real numbers
    for every telemetry field it actually measured.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    result = float(value)
    if not math.isfinite(result):
        return None
    return result


def non_negative(value: Any) -> float | None:
    parsed = safe_number(value)
    if parsed is None or parsed < 0:
        return None
    return parsed


def first_number(info: Mapping[str, Any], *keys: str) -> float | None:
    """First usable non-negative number among *keys*."""
    for key in keys:
        parsed = non_negative(info.get(key))
        if parsed is not None:
            return parsed
    return None


def _first_finite(info: Mapping[str, Any], *keys: str) -> float | None:
    for key in keys:
        parsed = safe_number(info.get(key))
        if parsed is not None:
            return parsed
    return None


def coerce_relay_flag(value: Any) -> bool:
    """Resolve one relay entry to on/off.

    A mapping is on when any of ``state``, ``isOn`` or ``isActive`` holds
    ``True``. A bare boolean is taken as-is. Anything else is off.
    """
    if isinstance(value, Mapping):
        return any(value.get(key) is True for key in RELAY_FLAG_KEYS)
    if isinstance(value, bool):
        return value
    return False


def reported_relay_flags(relay_map: Any) -> dict[RelaySlot, bool]:
    """Flags for the slots present in *relay_map*; unknown keys are skipped."""
    if not isinstance(relay_map, Mapping):
        return {}
    flags: dict[RelaySlot, bool] = {}
    for key, value in relay_map.items():
        slot = RelaySlot.coerce(key)
        if slot is not None:
            flags[slot] = coerce_relay_flag(value)
    return flags


def extract_reported_relays(payload: Any) -> dict[RelaySlot, bool]:
    """Relay flags actually reported by a status payload.

    Only slots present in the payload appear in the result, which is what
    the state store's partial merge expects.
    """
    return reported_relay_flags(parse_status_relays(payload).relay_map)


def normalize_relay_flags(payload: Any) -> dict[RelaySlot, bool]:
    """All four relay flags of a status payload, defaulting to off."""
    reported = extract_reported_relays(payload)
    return {slot: reported.get(slot, False) for slot in RelaySlot}


def power_info_of(payload: Any) -> Mapping[str, Any]:
    """The ``powerInfo`` map of a status payload (top level or under ``state``)."""
    if not isinstance(payload, Mapping):
        return {}
    power_info = payload.get("powerInfo")
    if isinstance(power_info, Mapping):
        return power_info
    state = payload.get("state")
    if isinstance(state, Mapping) and isinstance(state.get("powerInfo"), Mapping):
        return state["powerInfo"]
    return {}


def extract_focus_relays(payload: Any) -> dict[RelaySlot, bool]:
    """Relay flags reported when a device is opened for control.

    Reads the first relay map among the accepted status shapes; a payload
    without one falls back to the per-relay ``powerInfo`` entries, whose
    objects carry the flag (usually ``isActive``) next to the readings.
    """
    parsed = parse_status_relays(payload)
    if not isinstance(parsed, NoRelays):
        return reported_relay_flags(parsed.relay_map)
    return reported_relay_flags(power_info_of(payload))


def normalize_relay_telemetry(info: Any, fallback_price: float) -> RelayTelemetry:
    """Build telemetry for one relay from its ``powerInfo`` entry.

    Missing or non-numeric readings become ``0``. The price is the first
    number among ``pricePerKWh`` and ``price`` (negative prices clamp to
    ``0``), else *fallback_price*.
    """
    entry: Mapping[str, Any] = info if isinstance(info, Mapping) else {}
    price = _first_finite(entry, "pricePerKWh", "price")
    price = max(price, 0.0) if price is not None else (non_negative(fallback_price) or 0.0)
    return RelayTelemetry(
        power_rating_watts=first_number(entry, "powerRating") or 0.0,
        energy_wh=first_number(entry, "energyConsumed", "energyWh") or 0.0,
        cumulative_energy_wh=first_number(entry, "cumulativeEnergy") or 0.0,
        price_per_kwh=price,
    )


def extract_telemetry(payload: Any, fallback_price: float) -> dict[RelaySlot, RelayTelemetry]:
    """Telemetry for all four relays of a status payload."""
    power_info = power_info_of(payload)
    return {slot: normalize_relay_telemetry(power_info.get(slot.key), fallback_price) for slot in RelaySlot}


def confirmed_relay_state(response: Any, slot: RelaySlot, requested: bool) -> bool:
    """On/off state of *slot* as confirmed by a control response.

    Prefers a relay map in any accepted status shape, then a top-level
    boolean ``state`` (when ``relay`` is absent or names *slot*). Falls back
    to the *requested* value when the response confirms nothing specific.
    """
    reported = extract_reported_relays(response)
    if slot in reported:
        return reported[slot]
    if isinstance(response, Mapping):
        state = response.get("state")
        relay = response.get("relay")
        if isinstance(state, bool) and (relay is None or RelaySlot.coerce(relay) == slot):
            return state
    return requested
