from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Phase = Literal["idle", "running", "succeeded", "failed", "timed_out"]

TERMINAL_PHASES: frozenset[Phase] = frozenset({"succeeded", "failed", "timed_out"})


@dataclass(slots=True)
class SequencerState:
    """
    Mutable run state of one sequencer.

    - phase: where the state machine currently is
    - has_started: start() was called at least once
    - has_failed: a step raised (with or without handlers) or the deadline fired
    - steps_run: steps dispatched so far (diagnostics)
    - sealed: a timeout or handled failure ended the run; late next() calls
      are ignored until the queue is re-populated or start() is called

    Only the engine writes these; callers read them through Sequencer properties.
    """

    name: str
    phase: Phase = "idle"
    has_started: bool = False
    has_failed: bool = False
    steps_run: int = 0
    sealed: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def next_step_number(self) -> int:
        self.steps_run += 1
        return self.steps_run
