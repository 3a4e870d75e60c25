"""Custom exception hierarchy for pyrelay."""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for all pyrelay errors."""


class RelayConfigError(RelayError):
    """Invalid or missing configuration."""


class RelayTransportError(RelayError):
    """HTTP-level failure (network error or non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class RelayAuthenticationError(RelayTransportError):
    """Bearer token rejected by the server (401/403)."""


class RelayShapeError(RelayError):
    """Response payload is missing or malformed where a shape is mandatory."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class RelayApiError(RelayError):
    """Server answered 2xx but reported ``success: false``."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)
