"""HTTP transport: bearer auth, JSON bodies, status-code mapping."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyrelay._constants import AUTH_FAILURE_STATUSES, USER_AGENT
from pyrelay._redact import redact_for_log
from pyrelay.config import RelayConfig
from pyrelay.exceptions import RelayAuthenticationError, RelayShapeError, RelayTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
    ) -> Any: ...


def _error_message(body: Any, text: str) -> str:
    if isinstance(body, dict):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return text[:200]


class HttpTransport:
    """JSON-over-HTTP transport for the relay backend."""

    def __init__(self, config: RelayConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self, with_body: bool) -> dict[str, str]:
        headers = {
            "accept": "application/json",
            "authorization": f"Bearer {self._config.auth_token}",
            "user-agent": USER_AGENT,
        }
        if with_body:
            headers["content-type"] = "application/json"
        return headers

    async def request_json(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises
        ------
        RelayAuthenticationError
            On 401/403.
        RelayTransportError
            On network failure or any other non-2xx status.
        RelayShapeError
            When a 2xx body is not valid JSON.
        """
        url = f"{self._config.base_url}{endpoint}"
        body = json.dumps(payload) if payload is not None else None

        _logger.debug("%s %s %s", method, url, redact_for_log(payload) if payload is not None else "")

        try:
            async with self._http.request(
                method,
                url,
                data=body,
                headers=self._headers(body is not None),
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise RelayTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            decoded: Any = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            if 200 <= status < 300:
                raise RelayShapeError(f"Invalid JSON from {endpoint}: {text[:200]}", endpoint=endpoint) from exc
            decoded = None

        if not 200 <= status < 300:
            error_cls = RelayAuthenticationError if status in AUTH_FAILURE_STATUSES else RelayTransportError
            raise error_cls(
                f"HTTP {status} from {endpoint}: {_error_message(decoded, text)}",
                status_code=status,
                endpoint=endpoint,
            )

        _logger.debug("%s %s -> %d %s", method, endpoint, status, redact_for_log(decoded))
        return decoded
