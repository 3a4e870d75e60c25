"""Helpers for safe debug logging.

Every request carries a bearer token and device registration carries Wi-Fi
credentials. These helpers strip them before anything reaches DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "authtoken",
        "auth_token",
        "password",
        "ssid",
        "token",
    }
)


def mask_token(token: str, *, visible: int = 4) -> str:
    """Keep only the last *visible* characters of a secret."""
    if len(token) <= visible:
        return "*" * len(token)
    return f"{'*' * 8}{token[-visible:]}"


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a copy of *value* with sensitive fields replaced."""
    if _depth > 16:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, Mapping):
        return {
            str(key): "<redacted>"
            if str(key).lower() in _SENSITIVE_KEYS
            else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]

    return repr(value)
