from __future__ import annotations

import asyncio

import pytest

from cmdmux.engine.registry import TaskRegistry
from cmdmux.engine.reporter import Reporter
from cmdmux.engine.types import (
    InvalidTransitionError,
    Outcome,
    State,
    Stderr,
    Stdout,
    TaskStatus,
    Update,
)


def _drive(registry: TaskRegistry, events: list, renderer) -> Reporter:
    async def go() -> Reporter:
        queue: asyncio.Queue = asyncio.Queue()
        for event in events:
            queue.put_nowait(event)
        queue.put_nowait(None)
        reporter = Reporter(registry, queue, renderer)
        await reporter.run()
        return reporter

    return asyncio.run(go())


def test_events_are_applied_to_registry(recorder) -> None:
    registry = TaskRegistry(["a", "b"], 2)
    events = [
        Update(0, TaskStatus.running()),
        Update(1, TaskStatus.running()),
        Stderr(0, "warn 1"),
        Stderr(0, "warn 2"),
        Stderr(0, "warn 3"),
        Stdout(1, "out\n"),
        Update(1, TaskStatus.completed(Outcome.succeeded())),
        Stdout(0, ""),
        Update(0, TaskStatus.completed(Outcome.failed(7))),
    ]

    reporter = _drive(registry, events, recorder)

    assert reporter.remaining == 0
    assert list(registry.get(0).recent_stderr) == ["warn 2", "warn 3"]
    assert registry.get(0).status.outcome == Outcome.failed(7)
    assert registry.get(1).stdout == "out\n"
    assert registry.get(1).status.outcome == Outcome.succeeded()


def test_redraws_after_every_event_and_final_once(recorder) -> None:
    registry = TaskRegistry(["a"], 3)
    events = [
        Update(0, TaskStatus.running()),
        Stderr(0, "x"),
        Stdout(0, "y"),
        Update(0, TaskStatus.completed(Outcome.succeeded())),
    ]

    _drive(registry, events, recorder)

    assert len(recorder.draws) == len(events)
    assert [final for final, _ in recorder.draws] == [False, False, False, True]
    assert recorder.draws[-1][1] == [State.COMPLETED]


def test_empty_run_still_draws_final(recorder) -> None:
    reporter = _drive(TaskRegistry([], 3), [], recorder)

    assert reporter.remaining == 0
    assert recorder.finals == 1


def test_remaining_counts_only_completions(recorder) -> None:
    registry = TaskRegistry(["a", "b", "c"], 3)
    events = [
        Update(0, TaskStatus.running()),
        Update(1, TaskStatus.completed(Outcome.failed())),
        Stderr(0, "x"),
    ]

    reporter = _drive(registry, events, recorder)

    assert reporter.remaining == 2
    # the run never finished, but the channel closed
    assert recorder.finals == 1


def test_backward_update_is_rejected(recorder) -> None:
    registry = TaskRegistry(["a"], 3)
    events = [
        Update(0, TaskStatus.completed(Outcome.succeeded())),
        Update(0, TaskStatus.running()),
    ]

    with pytest.raises(InvalidTransitionError):
        _drive(registry, events, recorder)
