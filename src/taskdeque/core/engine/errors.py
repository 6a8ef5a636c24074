from __future__ import annotations


class SequencerError(Exception):
    """
    Base class for errors raised by taskdeque itself.

    Exceptions raised by caller-supplied steps are never wrapped; they reach
    `error` handlers (or the caller of next()) as the original objects.
    """


class StepFailure(SequencerError):
    """
    Raised by Sequencer.fail() from inside a step.

    Handled exactly like any other exception escaping a step.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SchedulerError(SequencerError):
    """
    The deferred-callback facility cannot schedule work
    (e.g. no asyncio event loop is available).
    """
