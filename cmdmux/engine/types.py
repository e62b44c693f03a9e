from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto


class State(Enum):
    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()


@dataclass(frozen=True)
class Outcome:
    success: bool
    exit_code: int | None

    @classmethod
    def succeeded(cls) -> Outcome:
        return cls(True, 0)

    @classmethod
    def failed(cls, exit_code: int | None = None) -> Outcome:
        return cls(False, exit_code)

    @classmethod
    def from_returncode(cls, returncode: int | None) -> Outcome:
        # asyncio reports death by signal N as -N
        if returncode == 0:
            return cls.succeeded()
        if returncode is None or returncode < 0:
            return cls.failed(None)
        return cls.failed(returncode)


@dataclass(frozen=True)
class TaskStatus:
    state: State
    outcome: Outcome | None = None

    @classmethod
    def pending(cls) -> TaskStatus:
        return cls(State.PENDING)

    @classmethod
    def running(cls) -> TaskStatus:
        return cls(State.RUNNING)

    @classmethod
    def completed(cls, outcome: Outcome) -> TaskStatus:
        return cls(State.COMPLETED, outcome)

    @property
    def is_completed(self) -> bool:
        return self.state is State.COMPLETED


@dataclass
class Task:
    id: int
    command: str
    recent_stderr: deque[str]
    status: TaskStatus = field(default_factory=TaskStatus.pending)
    stdout: str = ""


# Events sent from workers to the reporter.


@dataclass(frozen=True)
class Update:
    id: int
    status: TaskStatus


@dataclass(frozen=True)
class Stderr:
    id: int
    line: str


@dataclass(frozen=True)
class Stdout:
    id: int
    content: str


TaskEvent = Update | Stderr | Stdout


@dataclass(frozen=True)
class RunMetadata:
    started: datetime
    ended: datetime


@dataclass(frozen=True)
class TaskOutput:
    stdout: str


@dataclass(frozen=True)
class Result:
    metadata: RunMetadata
    tasks: dict[int, TaskOutput]

    def to_dict(self) -> dict:
        return {
            "metadata": {
                "started": self.metadata.started.isoformat(timespec="microseconds"),
                "ended": self.metadata.ended.isoformat(timespec="microseconds"),
            },
            "tasks": {
                str(task_id): {"stdout": output.stdout}
                for task_id, output in sorted(self.tasks.items())
            },
        }

    @classmethod
    def from_dict(cls, raw: dict) -> Result:
        metadata = RunMetadata(
            started=datetime.fromisoformat(raw["metadata"]["started"]),
            ended=datetime.fromisoformat(raw["metadata"]["ended"]),
        )
        tasks = {
            int(task_id): TaskOutput(stdout=fields["stdout"])
            for task_id, fields in raw["tasks"].items()
        }
        return cls(metadata, tasks)


class EngineError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class RunInterrupted(EngineError):
    def __init__(self, signame: str = "interrupt") -> None:
        super().__init__(f"run aborted: {signame}")
        self.signame = signame


class InvalidTransitionError(EngineError):
    def __init__(self, task_id: int, current: TaskStatus, new: TaskStatus):
        super().__init__(
            f"Task {task_id}: can't move from {current.state.name} to {new.state.name}"
        )
        self.task_id = task_id
