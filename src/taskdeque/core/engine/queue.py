from __future__ import annotations

from collections import deque
from typing import Any, Callable, Iterator, Optional, TypeAlias

Step: TypeAlias = Callable[..., Any]


class StepQueue:
    """
    Double-ended queue of pending steps.

    Front is the next step to run. Mutations are synchronous, so a step
    that shifts/pops/skips while running affects the very next read.
    """

    def __init__(self) -> None:
        self._steps: deque[Step] = deque()

    def __len__(self) -> int:
        return len(self._steps)

    def __bool__(self) -> bool:
        return bool(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(tuple(self._steps))

    def push(self, step: Step) -> None:
        self._steps.append(_require_callable(step))

    def unshift(self, step: Step) -> None:
        self._steps.appendleft(_require_callable(step))

    def shift(self) -> Optional[Step]:
        return self._steps.popleft() if self._steps else None

    def pop(self) -> Optional[Step]:
        return self._steps.pop() if self._steps else None

    def skip(self, count: int = 1) -> int:
        """
        Drop up to `count` steps from the front without running them.
        Clamps silently when fewer remain. Returns how many were dropped.
        """
        if count < 0:
            raise ValueError("skip count must be >= 0")
        dropped = 0
        while dropped < count and self._steps:
            self._steps.popleft()
            dropped += 1
        return dropped

    def clear(self) -> int:
        dropped = len(self._steps)
        self._steps.clear()
        return dropped

    def snapshot(self) -> tuple[Step, ...]:
        return tuple(self._steps)


def _require_callable(step: Step) -> Step:
    if not callable(step):
        raise TypeError(f"step must be callable, got {type(step).__name__}")
    return step
