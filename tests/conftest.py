from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyrelay.exceptions import RelayTransportError

Handler = Any


@dataclass
class FakeTransport:
    """In-memory stand-in for :class:`pyrelay._transport.HttpTransport`.

    ``routes`` maps ``(method, endpoint)`` to a JSON value, an exception to
    raise, or a (sync or async) callable taking the request payload.
    """

    routes: dict[tuple[str, str], Handler] = field(default_factory=dict)
    calls: list[tuple[str, str, Any]] = field(default_factory=list)

    def route(self, method: str, endpoint: str, handler: Handler) -> None:
        self.routes[(method, endpoint)] = handler

    def count(self, method: str, endpoint: str) -> int:
        return sum(1 for call in self.calls if call[0] == method and call[1] == endpoint)

    async def request_json(self, method: str, endpoint: str, payload: Any = None) -> Any:
        self.calls.append((method, endpoint, copy.deepcopy(payload)))
        await asyncio.sleep(0)
        if (method, endpoint) not in self.routes:
            raise RelayTransportError(f"HTTP 404 from {endpoint}: not found", status_code=404, endpoint=endpoint)
        handler = self.routes[(method, endpoint)]
        if isinstance(handler, BaseException):
            raise handler
        if callable(handler):
            result = handler(payload)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        return copy.deepcopy(handler)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def errors() -> list[tuple[str, BaseException]]:
    return []


@pytest.fixture
def on_error(errors: list[tuple[str, BaseException]]) -> Callable[[str, BaseException], None]:
    def _record(name: str, exc: BaseException) -> None:
        errors.append((name, exc))

    return _record
