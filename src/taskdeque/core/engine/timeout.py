from __future__ import annotations

from typing import Any, Callable, Optional

import structlog

from taskdeque.core.scheduling.base import Scheduler, TimerHandle

log = structlog.get_logger()

ExpiryCallback = Callable[[tuple[Any, ...], float], None]


class TimeoutSupervisor:
    """
    Owns at most one live deadline.

    arm() replaces any pending deadline. When a deadline fires, the handle is
    dropped first and then `on_expire(args, duration)` runs with the argument
    tuple the deadline was armed with.
    """

    def __init__(self, *, scheduler: Scheduler, on_expire: ExpiryCallback, label: str = "") -> None:
        self._scheduler = scheduler
        self._on_expire = on_expire
        self._label = label
        self._handle: Optional[TimerHandle] = None
        self._args: tuple[Any, ...] = ()
        self._duration: float = 0.0

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    @property
    def armed_args(self) -> tuple[Any, ...]:
        return self._args

    def arm(self, duration: float, args: tuple[Any, ...]) -> None:
        self.disarm()
        self._args = args
        self._duration = duration
        self._handle = self._scheduler.call_later(duration, self._expire)
        log.debug("timeout.armed", sequencer=self._label, seconds=duration)

    def rearm(self, duration: float) -> None:
        """
        Re-arm with the arguments of the previous arm().
        """
        self.arm(duration, self._args)

    def disarm(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None

    def _expire(self) -> None:
        if self._handle is None:
            return
        self._handle = None
        log.debug("timeout.expired", sequencer=self._label, seconds=self._duration)
        self._on_expire(self._args, self._duration)
