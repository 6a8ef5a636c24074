from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog

from taskdeque.core.scheduling.base import Callback

log = structlog.get_logger()


@dataclass(slots=True)
class ManualTimer:
    """
    Handle returned by ManualScheduler.
    """

    due: float
    order: int
    callback: Callback = field(compare=False)
    on_cancel: Optional[Callable[[ManualTimer], None]] = field(default=None, compare=False, repr=False)
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        if self.cancelled or self.fired:
            return
        self.cancelled = True
        if self.on_cancel is not None:
            self.on_cancel(self)
        # Drop references held by the dead entry
        self.callback = _noop
        self.on_cancel = None


def _noop() -> None:
    pass


class ManualScheduler:
    """
    Deterministic virtual-clock scheduler.

    Time only moves when advance() is called, so timeouts and deferred
    starts can be driven step by step without sleeping.

    Ordering rules:
      - callbacks run in due-time order
      - callbacks due at the same instant run in scheduling order
      - callbacks scheduled while advancing run in the same advance()
        if they fall due before its target time

    Cancelled timers are purged once they make up more than half of the
    heap, so a program that never advances the clock does not accumulate them.
    """

    def __init__(self, *, start: float = 0.0) -> None:
        self._now = start
        self._order = 0
        self._heap: list[tuple[float, int, ManualTimer]] = []
        self._cancelled = 0

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return len(self._heap) - self._cancelled

    @property
    def scheduled(self) -> int:
        """
        Heap entries, including cancelled ones not purged yet.
        """
        return len(self._heap)

    def call_soon(self, callback: Callback) -> ManualTimer:
        return self.call_later(0.0, callback)

    def call_later(self, delay: float, callback: Callback) -> ManualTimer:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._order += 1
        timer = ManualTimer(
            due=self._now + delay,
            order=self._order,
            callback=callback,
            on_cancel=self._timer_cancelled,
        )
        heapq.heappush(self._heap, (timer.due, timer.order, timer))
        return timer

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run every callback that falls due.
        Returns the number of callbacks run.
        """
        if seconds < 0:
            raise ValueError("cannot advance clock backwards")

        target = self._now + seconds
        ran = 0
        while self._heap and self._heap[0][0] <= target:
            due, _, timer = heapq.heappop(self._heap)
            if timer.cancelled:
                self._cancelled -= 1
                continue
            self._now = due
            timer.fired = True
            timer.on_cancel = None
            timer.callback()
            ran += 1

        self._now = target
        if ran:
            log.debug("scheduler.advanced", now=self._now, ran=ran)
        return ran

    def run_pending(self) -> int:
        """
        Run callbacks that are already due, without moving the clock.
        """
        return self.advance(0.0)

    def _timer_cancelled(self, timer: ManualTimer) -> None:
        self._cancelled += 1
        if self._cancelled * 2 > len(self._heap):
            self._heap = [entry for entry in self._heap if not entry[2].cancelled]
            heapq.heapify(self._heap)
            self._cancelled = 0
