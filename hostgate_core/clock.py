"""
Tick sources for scheduled transitions.

The simulated update driver never sleeps on its own; it asks a tick source to
call it back later. Production uses the asyncio loop's timers, tests use a
VirtualClock that only moves when told to.
"""

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class LoopTickSource:
    """Tick source backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


@dataclass(eq=False)
class _ScheduledCall:
    when: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """
    Deterministic tick source for tests and fast simulations.

    Callbacks due at the same instant run in scheduling order. A callback may
    schedule further callbacks; those run within the same advance() if they
    fall inside the window.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[tuple[float, int, _ScheduledCall]] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of scheduled, uncancelled callbacks."""
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ScheduledCall:
        if delay < 0:
            delay = 0.0
        call = _ScheduledCall(when=self._now + delay, callback=callback)
        heapq.heappush(self._queue, (call.when, next(self._seq), call))
        return call

    def next_deadline(self) -> float | None:
        """Time of the next uncancelled callback, or None when idle."""
        self._discard_cancelled()
        return self._queue[0][0] if self._queue else None

    def advance(self, seconds: float) -> int:
        """Move time forward, running every callback that falls due. Returns how many ran."""
        return self._run_until(self._now + seconds)

    def advance_to_next(self) -> int:
        """Jump to the next deadline and run what is due there."""
        deadline = self.next_deadline()
        if deadline is None:
            return 0
        return self._run_until(deadline)

    def _run_until(self, target: float) -> int:
        ran = 0
        while True:
            self._discard_cancelled()
            if not self._queue or self._queue[0][0] > target:
                break
            _, _, call = heapq.heappop(self._queue)
            self._now = call.when
            call.callback()
            ran += 1
        self._now = max(self._now, target)
        return ran

    def _discard_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
