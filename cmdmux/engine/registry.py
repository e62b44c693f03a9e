from __future__ import annotations

from collections import deque
from typing import Iterator

from .types import (
    InvalidTransitionError,
    RunMetadata,
    Result,
    State,
    Task,
    TaskOutput,
    TaskStatus,
)

_FORWARD = {
    State.PENDING: {State.RUNNING, State.COMPLETED},
    State.RUNNING: {State.COMPLETED},
    State.COMPLETED: set(),
}


class TaskRegistry:
    """Tasks indexed by their position in the resolved command list.

    Only the reporter writes to the registry while a run is in flight.
    """

    def __init__(self, commands: list[str], stderr_tail: int):
        self._tasks = [
            Task(id=i, command=command, recent_stderr=deque(maxlen=stderr_tail))
            for i, command in enumerate(commands)
        ]

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: int) -> Task:
        if not 0 <= task_id < len(self._tasks):
            raise KeyError(task_id)
        return self._tasks[task_id]

    def set_status(self, task_id: int, status: TaskStatus) -> None:
        task = self.get(task_id)
        if status.state not in _FORWARD[task.status.state]:
            raise InvalidTransitionError(task_id, task.status, status)
        task.status = status

    def push_stderr(self, task_id: int, line: str) -> None:
        # deque(maxlen=...) evicts the oldest line
        self.get(task_id).recent_stderr.append(line)

    def set_stdout(self, task_id: int, content: str) -> None:
        self.get(task_id).stdout = content

    def count(self, state: State) -> int:
        return sum(1 for task in self._tasks if task.status.state is state)

    def snapshot(self, metadata: RunMetadata) -> Result:
        return Result(
            metadata=metadata,
            tasks={task.id: TaskOutput(stdout=task.stdout) for task in self._tasks},
        )
