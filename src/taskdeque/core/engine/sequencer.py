from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NoReturn, Optional

import structlog

from taskdeque.core.engine.errors import StepFailure
from taskdeque.core.engine.lifecycle import SequencerLifecycle
from taskdeque.core.engine.queue import Step, StepQueue
from taskdeque.core.engine.state import Phase, SequencerState
from taskdeque.core.engine.timeout import TimeoutSupervisor
from taskdeque.core.events.names import DONE, ERROR, SUCCESS, TIMEOUT
from taskdeque.core.events.table import EventHandler, EventTable
from taskdeque.core.logging.setup import bound_context
from taskdeque.core.run.spec import SequencerConfig
from taskdeque.core.scheduling.asyncio_scheduler import AsyncioScheduler
from taskdeque.core.scheduling.base import Scheduler

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """
    Result of invoking one step: either it returned, or it raised `error`.
    """

    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _step_name(step: Step) -> str:
    return getattr(step, "__qualname__", None) or type(step).__name__


class Sequencer:
    """
    Mutable queue of steps run one at a time.

    Each step is called as `step(seq, *args)` and decides when to continue by
    calling `seq.next(*values)`; the values become the next step's arguments.
    When next() finds the queue empty, `success` then `done` fire.

    Failure handling:
      - a step that raises with no `error` handler registered re-raises to
        the caller of next() and leaves the rest of the queue untouched
      - with at least one `error` handler the queue is discarded, `error`
        fires with the exception (its `arguments` attribute holds the step's
        arguments) and then `done` fires with those arguments
      - if next() is not called again within `timeout_duration` seconds the
        queue is discarded and `timeout` then `done` fire

    Subclasses customise construction by overriding initialize(); the base
    setup always runs before it.
    """

    def __init__(
        self,
        *args: Any,
        name: Optional[str] = None,
        timeout_duration: Optional[float] = None,
        scheduler: Optional[Scheduler] = None,
        **kwargs: Any,
    ) -> None:
        options: dict[str, Any] = {}
        if name is not None:
            options["name"] = name
        if timeout_duration is not None:
            options["timeout_duration"] = timeout_duration
        self._config = SequencerConfig(**options)

        self._queue = StepQueue()
        self._events = EventTable()
        self._state = SequencerState(name=self._config.name)
        self._lifecycle = SequencerLifecycle(state=self._state)
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._timeout = TimeoutSupervisor(
            scheduler=self._scheduler,
            on_expire=self._on_deadline,
            label=self._config.name,
        )

        self.initialize(*args, **kwargs)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "__init__" in cls.__dict__:
            raise TypeError(f"{cls.__name__} must override initialize(), not __init__")

    def initialize(self, *args: Any, **kwargs: Any) -> None:
        """
        Extension hook, called once after base setup with the constructor's
        remaining arguments.
        """
        if args or kwargs:
            raise TypeError(f"{type(self).__name__}.initialize() takes no arguments")

    @classmethod
    def extend(cls, name: str, **members: Any) -> type[Sequencer]:
        """
        Build a subclass from a mapping of members.

            Fetcher = Sequencer.extend("Fetcher", initialize=init_fn, fetch=fetch_fn)
        """
        if not name.isidentifier():
            raise ValueError(f"invalid class name: {name!r}")
        if "__init__" in members:
            raise TypeError("pass initialize=, not __init__=")
        return type(name, (cls,), {"__module__": cls.__module__, **members})

    # ---------------- Read-only views ----------------

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def has_started(self) -> bool:
        return self._state.has_started

    @property
    def has_failed(self) -> bool:
        return self._state.has_failed

    @property
    def pending(self) -> tuple[Step, ...]:
        return self._queue.snapshot()

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def timeout_duration(self) -> float:
        return self._config.timeout_duration

    @timeout_duration.setter
    def timeout_duration(self, seconds: float) -> None:
        # Takes effect on the next arm / reset_timeout()
        self._config.timeout_duration = seconds

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} phase={self.phase} pending={len(self._queue)}>"

    # ---------------- Queue ----------------

    def push(self, step: Step) -> Sequencer:
        self._queue.push(step)
        self._lifecycle.reopen()
        return self

    def unshift(self, step: Step) -> Sequencer:
        self._queue.unshift(step)
        self._lifecycle.reopen()
        return self

    def shift(self) -> Optional[Step]:
        return self._queue.shift()

    def pop(self) -> Optional[Step]:
        return self._queue.pop()

    def skip(self, count: int = 1) -> Sequencer:
        dropped = self._queue.skip(count)
        log.debug("sequencer.skipped", sequencer=self.name, requested=count, dropped=dropped)
        return self

    def skip_all(self, *args: Any) -> Sequencer:
        """
        Discard the queue and finish successfully with `args`.
        """
        dropped = self._queue.clear()
        self._timeout.disarm()
        log.debug("sequencer.skipped_all", sequencer=self.name, dropped=dropped)
        self._succeed(args)
        return self

    # ---------------- Execution ----------------

    def start(self, *args: Any) -> Sequencer:
        self._lifecycle.reopen()
        self._lifecycle.start()
        self.next(*args)
        return self

    def next(self, *args: Any) -> None:
        """
        Run the front step with `args`, or finish if nothing is left.
        """
        self._timeout.disarm()

        if not self._queue:
            if self._state.sealed:
                # Late continuation from a step that already timed out or failed
                log.info("sequencer.next.ignored", sequencer=self.name, phase=self.phase)
                return
            self._succeed(args)
            return

        # Armed before the step is removed so a stalled last step still times out
        self._timeout.arm(self.timeout_duration, args)
        self._lifecycle.running()

        step = self._queue.shift()
        assert step is not None
        number = self._state.next_step_number()
        log.debug(
            "sequencer.step.dispatched",
            sequencer=self.name,
            step=_step_name(step),
            number=number,
            remaining=len(self._queue),
        )

        outcome = self._invoke(step, args)
        if not outcome.ok:
            assert outcome.error is not None
            self._recover(outcome.error, args)

    def fail(self, message: str) -> NoReturn:
        """
        Abort the current step; handled like any exception it raises.
        """
        raise StepFailure(message)

    def reset_timeout(self) -> Sequencer:
        """
        Restart the deadline with the current timeout_duration.
        No-op once the queue is empty.
        """
        if self._queue:
            self._timeout.rearm(self.timeout_duration)
        return self

    def then_start(self, *args: Any) -> Sequencer:
        """
        Return a new sequencer that starts with `args` once this one is done.

        If this queue is already empty the new sequencer starts on the next
        scheduler iteration instead, never synchronously.
        """
        chained = Sequencer(scheduler=self._scheduler)

        def start_chained(*_: Any) -> None:
            self._events.off(DONE, start_chained)
            chained.start(*args)

        if self._queue:
            self.on(DONE, start_chained)
            log.debug("sequencer.chained", sequencer=self.name, chained=chained.name, deferred_to="done")
        else:
            self._scheduler.call_soon(start_chained)
            log.debug("sequencer.chained", sequencer=self.name, chained=chained.name, deferred_to="next_tick")
        return chained

    # ---------------- Events ----------------

    def on(self, event: str, handler: EventHandler) -> Sequencer:
        self._events.on(event, handler)
        return self

    def off(self, event: str, handler: EventHandler) -> Sequencer:
        self._events.off(event, handler)
        return self

    def notify(self, event: str, *args: Any) -> Sequencer:
        """
        Call every handler for `event` as handler(seq, *args).
        Handler exceptions propagate to the caller.
        """
        if not self._queue:
            self._timeout.disarm()
        self._events.notify(event, self, *args)
        return self

    # ---------------- Internals ----------------

    def _invoke(self, step: Step, args: tuple[Any, ...]) -> StepOutcome:
        with bound_context(sequencer=self.name):
            try:
                step(self, *args)
            except Exception as exc:
                return StepOutcome(error=exc)
        return StepOutcome()

    def _recover(self, exc: Exception, args: tuple[Any, ...]) -> None:
        if not self._events.has_handlers(ERROR):
            self._timeout.disarm()
            self._lifecycle.mark_failed(error_type=type(exc).__name__)
            raise exc

        self._queue.clear()
        self._timeout.disarm()
        exc.arguments = args  # type: ignore[attr-defined]
        self._lifecycle.fail(error_type=type(exc).__name__, error_message=str(exc))
        self.notify(ERROR, exc)
        self.notify(DONE, *args)

    def _succeed(self, args: tuple[Any, ...]) -> None:
        self._lifecycle.succeed()
        self.notify(SUCCESS, *args)
        self.notify(DONE, *args)

    def _on_deadline(self, args: tuple[Any, ...], after_seconds: float) -> None:
        self._queue.clear()
        self._lifecycle.time_out(after_seconds=after_seconds)
        self.notify(TIMEOUT, *args)
        self.notify(DONE, *args)
