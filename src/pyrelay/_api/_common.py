"""Shared helpers for endpoint modules.

Internal to pyrelay and may change at any time.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from pyrelay.exceptions import RelayApiError, RelayShapeError


def device_path(device_id: str, suffix: str = "") -> str:
    """``/devices/<id><suffix>`` with the id percent-encoded."""
    return f"/devices/{quote(device_id, safe='')}{suffix}"


def require_object(endpoint: str, decoded: Any) -> dict[str, Any]:
    """Return *decoded* if it is a JSON object, else raise :class:`RelayShapeError`."""
    if not isinstance(decoded, dict):
        raise RelayShapeError(
            f"{endpoint} returned {type(decoded).__name__}, expected an object",
            endpoint=endpoint,
        )
    return decoded


def raise_for_failure(endpoint: str, decoded: dict[str, Any]) -> dict[str, Any]:
    """Raise :class:`RelayApiError` when a 2xx body says ``success: false``."""
    if decoded.get("success") is False:
        message = decoded.get("error") or decoded.get("message") or "request rejected"
        raise RelayApiError(f"{endpoint} failed: {message}", endpoint=endpoint)
    return decoded
