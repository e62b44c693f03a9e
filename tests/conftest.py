from __future__ import annotations

import sys
from pathlib import Path

import pytest

from cmdmux.engine.registry import TaskRegistry
from cmdmux.engine.types import State

SHELL = ["/bin/sh", "-c"]


def py(code: str) -> str:
    """
    Build a shell command that runs `python -c "<code>"` using the current interpreter.
    """
    exe = str(Path(sys.executable))
    return f'"{exe}" -c "{code}"'


class RecordingRenderer:
    """Stands in for the dashboard and remembers what every draw saw."""

    def __init__(self) -> None:
        self.draws: list[tuple[bool, list[State]]] = []
        self.closed = 0

    def draw(self, registry: TaskRegistry, *, final: bool = False) -> None:
        self.draws.append((final, [task.status.state for task in registry]))

    def close(self) -> None:
        self.closed += 1

    @property
    def finals(self) -> int:
        return sum(1 for final, _ in self.draws if final)

    def max_running(self) -> int:
        return max(
            (states.count(State.RUNNING) for _, states in self.draws),
            default=0,
        )


@pytest.fixture
def recorder() -> RecordingRenderer:
    return RecordingRenderer()
