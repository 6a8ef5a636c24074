from __future__ import annotations

from typing import Any

import pytest

from taskdeque.core.engine.sequencer import Sequencer
from taskdeque.core.events.names import LIFECYCLE_EVENTS
from taskdeque.core.scheduling.manual import ManualScheduler


class Recorder:
    """
    Records (event, args) for every lifecycle notification of a sequencer.
    """

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []

    def subscriptions(self):
        return [(name, self._handler_for(name)) for name in LIFECYCLE_EVENTS]

    def attach(self, seq: Sequencer, *only: str) -> "Recorder":
        # Pass event names to skip the rest (e.g. to keep fail-fast without an error handler)
        for name, handler in self.subscriptions():
            if not only or name in only:
                seq.on(name, handler)
        return self

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def _handler_for(self, name: str):
        def handler(seq: Sequencer, *args: Any) -> None:
            self.events.append((name, args))

        return handler


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def seq(scheduler: ManualScheduler) -> Sequencer:
    return Sequencer(name="test", scheduler=scheduler)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
