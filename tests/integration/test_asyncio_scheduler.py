from __future__ import annotations

import asyncio

import pytest

from taskdeque.core.engine.errors import SchedulerError
from taskdeque.core.engine.sequencer import Sequencer
from taskdeque.core.scheduling.asyncio_scheduler import AsyncioScheduler


def test_timeout_fires_on_real_event_loop() -> None:
    events: list[str] = []

    async def main() -> Sequencer:
        seq = Sequencer(timeout_duration=0.03)
        seq.on("timeout", lambda s, *a: events.append("timeout"))
        seq.on("done", lambda s, *a: events.append("done"))
        seq.push(lambda s: None).push(lambda s: s.next())
        seq.start()

        assert events == []
        await asyncio.sleep(0.2)
        return seq

    seq = asyncio.run(main())

    assert events == ["timeout", "done"]
    assert seq.has_failed
    assert len(seq) == 0


def test_steps_resume_from_coroutines() -> None:
    order: list[str] = []

    async def main() -> None:
        finished = asyncio.Event()
        loop = asyncio.get_running_loop()
        seq = Sequencer(timeout_duration=1)

        def fetch(s: Sequencer) -> None:
            async def io() -> None:
                await asyncio.sleep(0.01)
                order.append("fetched")
                s.next("payload")

            loop.create_task(io())

        seq.push(fetch).push(lambda s, data: (order.append(data), s.next()))
        seq.on("done", lambda s, *a: finished.set())
        seq.start()

        await asyncio.wait_for(finished.wait(), timeout=1)

    asyncio.run(main())

    assert order == ["fetched", "payload"]


def test_then_start_on_empty_source_runs_on_next_loop_iteration() -> None:
    order: list[str] = []

    async def main() -> None:
        seq = Sequencer()
        chained = seq.then_start()
        chained.push(lambda s: order.append("chained"))
        order.append("sync")
        await asyncio.sleep(0)

    asyncio.run(main())

    assert order == ["sync", "chained"]


def test_explicit_loop_is_used_outside_a_running_loop() -> None:
    loop = asyncio.new_event_loop()
    try:
        fired: list[str] = []
        sched = AsyncioScheduler(loop=loop)
        sched.call_later(0.01, lambda: fired.append("x"))
        loop.run_until_complete(asyncio.sleep(0.05))
        assert fired == ["x"]
    finally:
        loop.close()


def test_scheduler_without_loop_raises() -> None:
    seq = Sequencer()
    seq.push(lambda s: s.next())

    with pytest.raises(SchedulerError):
        seq.start()


def test_scheduler_error_leaves_sequencer_idle() -> None:
    seq = Sequencer()
    seq.push(lambda s: s.next())

    with pytest.raises(SchedulerError):
        seq.start()

    assert seq.phase == "idle"
    assert len(seq) == 1
