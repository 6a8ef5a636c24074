from __future__ import annotations

from typing import Callable, Protocol

Callback = Callable[[], None]


class TimerHandle(Protocol):
    """
    A scheduled callback. Fires at most once; cancel() before it fires
    prevents it from running. Cancelling twice (or after firing) is a no-op.
    """

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """
    Cooperative deferred-callback facility shared by sequencers.

    Implementations never run a callback synchronously from call_soon() or
    call_later(); callbacks run later on the scheduler's single thread of
    control.
    """

    def call_soon(self, callback: Callback) -> TimerHandle:
        """
        Run callback on the next iteration of the scheduler.
        """
        ...

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        """
        Run callback once, `delay` seconds from now.
        """
        ...
