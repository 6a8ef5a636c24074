from __future__ import annotations

import structlog

from taskdeque.core.engine.state import Phase, SequencerState

log = structlog.get_logger()


class SequencerLifecycle:
    """
    Explicit phase controller.

    Keeps phase/flag transitions in one place and audits them via logs.
    A terminal sequencer may be re-populated and driven again, which moves
    it back to `running`.
    """

    def __init__(self, *, state: SequencerState) -> None:
        self._state = state

    @property
    def state(self) -> SequencerState:
        return self._state

    def start(self) -> None:
        self._state.has_started = True
        log.info("sequencer.started", sequencer=self._state.name)

    def running(self) -> None:
        if self._state.phase != "running":
            log.debug("sequencer.running", sequencer=self._state.name, previous=self._state.phase)
        self._state.phase = "running"

    def succeed(self) -> None:
        self._finish("succeeded")
        log.info("sequencer.succeeded", sequencer=self._state.name, steps_run=self._state.steps_run)

    def fail(self, *, error_type: str, error_message: str) -> None:
        self._state.has_failed = True
        self._state.sealed = True
        self._finish("failed")
        log.warning(
            "sequencer.failed",
            sequencer=self._state.name,
            error_type=error_type,
            error_message=error_message,
        )

    def mark_failed(self, *, error_type: str) -> None:
        # Fail-fast path: the exception leaves the engine, queue is left as-is
        self._state.has_failed = True
        self._finish("failed")
        log.error("sequencer.step.unhandled", sequencer=self._state.name, error_type=error_type)

    def time_out(self, *, after_seconds: float) -> None:
        self._state.has_failed = True
        self._state.sealed = True
        self._finish("timed_out")
        log.warning("sequencer.timed_out", sequencer=self._state.name, after_seconds=after_seconds)

    def reopen(self) -> None:
        self._state.sealed = False

    def _finish(self, phase: Phase) -> None:
        self._state.phase = phase
