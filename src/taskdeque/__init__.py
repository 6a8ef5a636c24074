from __future__ import annotations

from taskdeque.core.engine.components import Attachment, attach
from taskdeque.core.engine.errors import SchedulerError, SequencerError, StepFailure
from taskdeque.core.engine.sequencer import Sequencer
from taskdeque.core.events.names import DONE, ERROR, SUCCESS, TIMEOUT
from taskdeque.core.logging.setup import configure_logging
from taskdeque.core.run.journal import JournalWriter
from taskdeque.core.scheduling.asyncio_scheduler import AsyncioScheduler
from taskdeque.core.scheduling.manual import ManualScheduler

# Public surface
__all__ = [
    "Attachment",
    "AsyncioScheduler",
    "DONE",
    "ERROR",
    "JournalWriter",
    "ManualScheduler",
    "SUCCESS",
    "SchedulerError",
    "Sequencer",
    "SequencerError",
    "StepFailure",
    "TIMEOUT",
    "attach",
    "configure_logging",
]
