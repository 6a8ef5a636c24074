from __future__ import annotations

import asyncio
from typing import Optional

from taskdeque.core.engine.errors import SchedulerError
from taskdeque.core.scheduling.base import Callback, TimerHandle


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop.

    With no explicit loop, the loop running at call time is used. Sequencers
    driven from plain synchronous code should use ManualScheduler instead.
    """

    def __init__(self, *, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            raise SchedulerError(
                "no running asyncio event loop; pass loop= or use ManualScheduler"
            ) from exc

    def call_soon(self, callback: Callback) -> TimerHandle:
        return self._resolve_loop().call_soon(callback)

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        return self._resolve_loop().call_later(delay, callback)
