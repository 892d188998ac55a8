"""Scoped one-shot and repeating timers on top of ``loop.call_later``.

Every bot owns a ``TimerGroup``; anything it schedules goes through the
group so a terminal transition can cancel all of it in one call.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Any: ...


class TimerKind(Enum):
    ONE_SHOT = "one_shot"
    REPEATING = "repeating"


class Timer:
    """A single armed timer. Cancelling is idempotent."""

    def __init__(
        self,
        scheduler: Scheduler,
        kind: TimerKind,
        delay: float,
        callback: Callable[[], None],
        name: str = "",
    ) -> None:
        self.kind = kind
        self.delay = max(0.0, delay)
        self.name = name
        self._scheduler = scheduler
        self._callback = callback
        self._handle: Any = None
        self._done = False

    @property
    def active(self) -> bool:
        return not self._done

    def start(self) -> Timer:
        self._handle = self._scheduler.call_later(self.delay, self._fire)
        return self

    def cancel(self) -> None:
        if self._done:
            return
        self._done = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        if self._done:
            return
        if self.kind is TimerKind.REPEATING:
            # Re-arm first so a failing tick does not stop the timer
            self._handle = self._scheduler.call_later(self.delay, self._fire)
        else:
            self._done = True
            self._handle = None
        try:
            self._callback()
        except Exception:
            logger.exception("Timer %s callback failed", self.name or "?")


class TimerGroup:
    """All timers owned by one bot."""

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self._scheduler = scheduler or asyncio.get_running_loop()
        self._timers: list[Timer] = []

    def once(self, delay_ms: float, callback: Callable[[], None], name: str = "") -> Timer:
        return self._arm(TimerKind.ONE_SHOT, delay_ms, callback, name)

    def every(
        self, interval_ms: float, callback: Callable[[], None], name: str = ""
    ) -> Timer:
        return self._arm(TimerKind.REPEATING, interval_ms, callback, name)

    def cancel_all(self) -> int:
        """Cancel every live timer; returns how many were still active."""
        live = [t for t in self._timers if t.active]
        for t in live:
            t.cancel()
        self._timers.clear()
        return len(live)

    @property
    def active(self) -> list[Timer]:
        return [t for t in self._timers if t.active]

    def _arm(
        self, kind: TimerKind, delay_ms: float, callback: Callable[[], None], name: str
    ) -> Timer:
        # Drop finished one-shots so long-lived bots do not accumulate them
        self._timers = [t for t in self._timers if t.active]
        timer = Timer(self._scheduler, kind, delay_ms / 1000.0, callback, name)
        self._timers.append(timer)
        return timer.start()
