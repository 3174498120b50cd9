"""Single-slot cancelable timer on top of the asyncio event loop.

[CancelableTimer][ravensync.core.timer.CancelableTimer] holds at most one
pending callback. Scheduling a new callback cancels the previous one first,
which is what the poll scheduler relies on for its "at most one pending
``listen``" guarantee.

The loop is anything exposing ``call_later(delay, callback)`` returning a
handle with ``cancel()``; by default the running asyncio loop is used.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerLoop(Protocol):
    def call_later(
        self, delay: float, callback: Callable[..., Any], /, *args: Any
    ) -> TimerHandle: ...


class CancelableTimer:
    """Holds one pending delayed callback, replacing it on every schedule."""

    def __init__(self, loop: TimerLoop | None = None) -> None:
        self._loop = loop
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """Cancel any pending callback, then run *callback* after *delay* seconds."""
        self.cancel()
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()
