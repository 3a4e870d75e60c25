"""Named repeating-fetch primitive.

Each name owns at most one schedule. A schedule fires its task immediately
and then every ``interval`` seconds, measured from the start time. Every tick
runs as its own task, so a slow or hung request never delays the next tick,
and a tick that raises is reported and forgotten.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)

PollTask = Callable[[], Awaitable[None]]
ErrorHook = Callable[[str, BaseException], None]


class Poller:
    """Registry of named interval schedules on the running event loop."""

    def __init__(self, *, on_error: ErrorHook | None = None) -> None:
        self._on_error = on_error
        self._schedules: dict[str, asyncio.Task[None]] = {}
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def names(self) -> frozenset[str]:
        """Names with a live schedule."""
        return frozenset(self._schedules)

    def is_running(self, name: str) -> bool:
        return name in self._schedules

    def start(self, name: str, interval: float, task: PollTask) -> None:
        """(Re)start the schedule *name*.

        Any schedule already registered under *name* is cancelled first, so
        starting twice never leaves two timers alive. Must be called from the
        event loop thread.
        """
        if not math.isfinite(interval) or interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self.stop(name)
        loop = asyncio.get_running_loop()
        self._schedules[name] = loop.create_task(
            self._run_schedule(name, interval, task),
            name=f"pyrelay-poller-{name}",
        )
        _logger.debug("Poller %s started (interval=%.3fs)", name, interval)

    def stop(self, name: str) -> bool:
        """Cancel the schedule *name*. Returns ``False`` if none was running.

        Ticks already in flight are left to finish.
        """
        schedule = self._schedules.pop(name, None)
        if schedule is None:
            return False
        schedule.cancel()
        _logger.debug("Poller %s stopped", name)
        return True

    def stop_all(self) -> None:
        for name in list(self._schedules):
            self.stop(name)

    async def aclose(self) -> None:
        """Stop every schedule and cancel in-flight ticks (session teardown)."""
        schedules = list(self._schedules.values())
        self.stop_all()
        pending = schedules + list(self._in_flight)
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def report_error(self, name: str, exc: BaseException) -> None:
        """Hand a tick failure to the observability hook (or the log)."""
        if self._on_error is None:
            _logger.warning("Poll task %s failed: %s", name, exc, exc_info=exc)
            return
        try:
            self._on_error(name, exc)
        except Exception:
            _logger.debug("Poll error hook failed for %s", name, exc_info=True)

    async def _run_schedule(self, name: str, interval: float, task: PollTask) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            self._spawn_tick(name, task)
            next_tick += interval
            now = loop.time()
            if next_tick < now:
                # Missed ticks are skipped, not replayed.
                missed = math.ceil((now - next_tick) / interval)
                _logger.debug("Poller %s skipped %d tick(s)", name, missed)
                next_tick += missed * interval
            await asyncio.sleep(next_tick - now)

    def _spawn_tick(self, name: str, task: PollTask) -> None:
        tick = asyncio.get_running_loop().create_task(self._run_tick(name, task))
        self._in_flight.add(tick)
        tick.add_done_callback(self._in_flight.discard)

    async def _run_tick(self, name: str, task: PollTask) -> None:
        try:
            await task()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.report_error(name, exc)
