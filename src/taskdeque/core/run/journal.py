from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Optional, Sequence

import orjson

from taskdeque.core.config.settings import settings
from taskdeque.core.engine.sequencer import Sequencer
from taskdeque.core.events.names import DONE, ERROR, SUCCESS, TIMEOUT
from taskdeque.core.events.table import EventHandler


class JournalWriter:
    """
    Event component: appends one JSON line per terminal or `done`
    notification of every sequencer it is attached to.

        journal = JournalWriter(Path("runs/journal.jsonl"))
        attach(seq, journal)

    The file is opened on the first record and appended to, never truncated.
    """

    def __init__(self, path: Path, *, fsync: Optional[bool] = None) -> None:
        self._path = path
        self._fsync = settings.journal_fsync if fsync is None else fsync
        self._fh: Optional[BinaryIO] = None

    @property
    def path(self) -> Path:
        return self._path

    def subscriptions(self) -> Sequence[tuple[str, EventHandler]]:
        return [
            (SUCCESS, self._on_success),
            (ERROR, self._on_error),
            (TIMEOUT, self._on_timeout),
            (DONE, self._on_done),
        ]

    def close(self) -> None:
        if self._fh is None:
            return
        try:
            self._sync()
        finally:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> JournalWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _on_success(self, seq: Sequencer, *args: Any) -> None:
        self._record(SUCCESS, seq, args)

    def _on_error(self, seq: Sequencer, error: BaseException) -> None:
        self._record(ERROR, seq, (error,))

    def _on_timeout(self, seq: Sequencer, *args: Any) -> None:
        self._record(TIMEOUT, seq, args)

    def _on_done(self, seq: Sequencer, *args: Any) -> None:
        self._record(DONE, seq, args)

    def _record(self, event: str, seq: Sequencer, args: tuple[Any, ...]) -> None:
        if self._fh is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self._path.open("ab")

        line = orjson.dumps(
            {
                "event": event,
                "sequencer": seq.name,
                "phase": seq.phase,
                "timestamp_utc": datetime.now(timezone.utc).isoformat(),
                "args": [_jsonable(a) for a in args],
            },
            option=orjson.OPT_SORT_KEYS | orjson.OPT_APPEND_NEWLINE,
        )
        self._fh.write(line)
        self._sync()

    def _sync(self) -> None:
        assert self._fh is not None
        self._fh.flush()
        if self._fsync:
            os.fsync(self._fh.fileno())


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseException):
        return {"type": type(value).__name__, "message": str(value)}
    if isinstance(value, (str, int, float, bool, type(None))):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return str(value)
