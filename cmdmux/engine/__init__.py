from .dashboard import Dashboard
from .multiplexer import Multiplexer
from .pool import WorkerPool
from .registry import TaskRegistry
from .reporter import Reporter
from .types import (
    EngineError,
    InvalidTransitionError,
    Outcome,
    Result,
    RunInterrupted,
    RunMetadata,
    State,
    Task,
    TaskOutput,
    TaskStatus,
)

__all__ = [
    "Dashboard",
    "Multiplexer",
    "WorkerPool",
    "TaskRegistry",
    "Reporter",
    "EngineError",
    "InvalidTransitionError",
    "Outcome",
    "Result",
    "RunInterrupted",
    "RunMetadata",
    "State",
    "Task",
    "TaskOutput",
    "TaskStatus",
]
