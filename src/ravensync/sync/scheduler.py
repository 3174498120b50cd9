"""
Cursor-driven poll scheduler.

[PollScheduler][ravensync.sync.scheduler.PollScheduler] drives the relay
client's incremental ``listen(channel_ids, since)`` call and owns the
``since`` cursor (Unix milliseconds, ``0`` = not started).

State machine:

```text
IDLE    no client, or client not ready        -> nothing scheduled
ARMED   ready, cursor == 0                    -> listen(ids, now // 1000) after initial_delay
STEADY  ready, cursor > 0                     -> listen(ids, cursor // 1000) after steady_delay
```

After each dispatch the cursor advances to the dispatch time, moving ARMED to
STEADY. Whenever an input changes (client, readiness, channel ids, cursor)
the pending timer is cancelled and a new one is scheduled from the new state,
so at most one ``listen`` is ever pending.

Note:
    The channel ids passed to ``listen`` are always the full current list,
    so newly discovered channels are picked up by the next poll without any
    per-channel subscription.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from enum import StrEnum

from ravensync.core.logger import Logger
from ravensync.core.metrics import CURSOR_SECONDS, LISTEN_CALLS
from ravensync.core.timer import CancelableTimer, TimerLoop

from .configs import SchedulerConfig
from .readiness import ReadinessGate
from .relay import RelayClient


def now_ms() -> int:
    """Current wall-clock time in Unix milliseconds."""
    return time.time_ns() // 1_000_000


class SchedulerState(StrEnum):
    IDLE = "idle"
    ARMED = "armed"
    STEADY = "steady"


class PollScheduler:
    """Issues periodic ``listen`` calls with an adaptive delay.

    Args:
        config: Initial and steady delays.
        loop: Object providing ``call_later``; defaults to the running
            asyncio loop at scheduling time.
        clock: Returns the current time in milliseconds.
        logger: Structured logger; a default one is created when omitted.
        metrics_enabled: Record listen calls and the cursor in Prometheus.
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        *,
        loop: TimerLoop | None = None,
        clock: Callable[[], int] = now_ms,
        logger: Logger | None = None,
        metrics_enabled: bool = False,
    ) -> None:
        self._config = config or SchedulerConfig()
        self._timer = CancelableTimer(loop)
        self._clock = clock
        self._logger = logger or Logger("scheduler")
        self._metrics_enabled = metrics_enabled
        self._client: RelayClient | None = None
        self._gate = ReadinessGate()
        self._channel_ids: tuple[str, ...] = ()
        self._since = 0

    @property
    def since(self) -> int:
        """The cursor in milliseconds (0 before the first dispatch)."""
        return self._since

    @property
    def channel_ids(self) -> tuple[str, ...]:
        return self._channel_ids

    @property
    def pending(self) -> bool:
        """Whether a ``listen`` call is currently scheduled."""
        return self._timer.pending

    @property
    def state(self) -> SchedulerState:
        if self._client is None or not self._gate.ready:
            return SchedulerState.IDLE
        return SchedulerState.ARMED if self._since == 0 else SchedulerState.STEADY

    def bind(self, client: RelayClient | None, gate: ReadinessGate) -> None:
        """Point the scheduler at a (new) relay client and its readiness gate.

        The cursor is kept: it is process-wide, not per client.
        """
        self._client = client
        self._gate = gate
        self._reschedule()

    def set_channel_ids(self, channel_ids: Iterable[str]) -> None:
        """Replace the channel ids to poll; reschedules only on an actual change."""
        ids = tuple(channel_ids)
        if ids == self._channel_ids:
            return
        self._channel_ids = ids
        self._reschedule()

    def notify_ready(self) -> None:
        """Re-evaluate the state after the bound gate opened."""
        self._reschedule()

    def stop(self) -> None:
        """Cancel the pending ``listen`` call, if any."""
        self._timer.cancel()

    def _reschedule(self) -> None:
        state = self.state
        if state is SchedulerState.IDLE:
            self._timer.cancel()
            return
        delay = (
            self._config.initial_delay
            if state is SchedulerState.ARMED
            else self._config.steady_delay
        )
        self._timer.schedule(delay, self._dispatch)
        self._logger.debug("listen_scheduled", state=state, delay_s=delay)

    def _dispatch(self) -> None:
        client = self._client
        if client is None or not self._gate.ready:
            return

        now = self._clock()
        since = (self._since or now) // 1000
        try:
            client.listen(list(self._channel_ids), since)
            self._logger.info("listen_dispatched", channels=len(self._channel_ids), since=since)
            if self._metrics_enabled:
                LISTEN_CALLS.inc()
        finally:
            # the cursor advances and polling continues even if listen raised
            self._since = max(self._since, now)
            if self._metrics_enabled:
                CURSOR_SECONDS.set(self._since // 1000)
            self._reschedule()
