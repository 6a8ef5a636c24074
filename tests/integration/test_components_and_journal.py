from __future__ import annotations

import json
from pathlib import Path

import pytest

from taskdeque.core.engine.components import attach
from taskdeque.core.engine.sequencer import Sequencer
from taskdeque.core.run.journal import JournalWriter
from taskdeque.core.scheduling.manual import ManualScheduler


class Collector:
    def __init__(self) -> None:
        self.done: list[tuple] = []
        self.errors: list[BaseException] = []

    def subscriptions(self):
        return [
            ("done", self._on_done),
            ("error", self._on_error),
        ]

    def _on_done(self, seq: Sequencer, *args) -> None:
        self.done.append(args)

    def _on_error(self, seq: Sequencer, err: BaseException) -> None:
        self.errors.append(err)


class ListsHandlerTwice:
    def subscriptions(self):
        return [("done", self._on_done), ("done", self._on_done)]

    def _on_done(self, seq: Sequencer, *args) -> None:
        pass


def read_journal(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


def test_attach_registers_handlers_in_component_order(seq: Sequencer) -> None:
    col = Collector()
    attachment = attach(seq, col)

    assert [event for event, _ in attachment.bindings] == ["done", "error"]

    seq.push(lambda s, n: s.fail("boom")).start(5)

    assert col.done == [(5,)]
    assert str(col.errors[0]) == "boom"


def test_attach_rejects_repeated_handler_before_registering(seq: Sequencer) -> None:
    with pytest.raises(ValueError):
        attach(seq, Collector(), ListsHandlerTwice())

    # nothing from the rejected call was registered, so failures stay loud
    seq.push(lambda s: s.fail("loud"))
    with pytest.raises(Exception, match="loud"):
        seq.start()


def test_detach_restores_fail_fast(seq: Sequencer) -> None:
    attach(seq, Collector()).detach()

    seq.push(lambda s: s.fail("loud"))
    with pytest.raises(Exception, match="loud"):
        seq.start()


def test_journal_records_terminal_events(tmp_path: Path, scheduler: ManualScheduler) -> None:
    path = tmp_path / "journal" / "events.jsonl"
    ok = Sequencer(name="ok-run", scheduler=scheduler)
    bad = Sequencer(name="bad-run", scheduler=scheduler)
    slow = Sequencer(name="slow-run", scheduler=scheduler, timeout_duration=0.5)

    with JournalWriter(path, fsync=False) as journal:
        for seq in (ok, bad, slow):
            attach(seq, journal)

        ok.push(lambda s: s.next({"rows": 3}, Path("/tmp/out"))).start()
        bad.push(lambda s, n: s.fail(f"bad {n}")).start(7)
        slow.push(lambda s, *_: None).start("waiting")
        scheduler.advance(0.5)

    records = read_journal(path)
    summary = [(r["sequencer"], r["event"], r["phase"]) for r in records]

    assert summary == [
        ("ok-run", "success", "succeeded"),
        ("ok-run", "done", "succeeded"),
        ("bad-run", "error", "failed"),
        ("bad-run", "done", "failed"),
        ("slow-run", "timeout", "timed_out"),
        ("slow-run", "done", "timed_out"),
    ]
    assert records[0]["args"] == [{"rows": 3}, "/tmp/out"]
    assert records[2]["args"] == [{"type": "StepFailure", "message": "bad 7"}]
    assert records[3]["args"] == [7]
    assert records[4]["args"] == ["waiting"]
    assert all("timestamp_utc" in r for r in records)


def test_journal_appends_across_writers(tmp_path: Path, seq: Sequencer) -> None:
    path = tmp_path / "events.jsonl"

    for value in ("first", "second"):
        with JournalWriter(path, fsync=False) as journal:
            attachment = attach(seq, journal)
            seq.push(lambda s, v=value: s.next(v)).start()
            attachment.detach()

    assert [r["args"] for r in read_journal(path)] == [["first"], ["first"], ["second"], ["second"]]


def test_journal_without_records_creates_no_file(tmp_path: Path) -> None:
    path = tmp_path / "unused.jsonl"
    JournalWriter(path, fsync=False).close()
    assert not path.exists()
