from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from .registry import TaskRegistry
from .types import Stderr, Stdout, TaskEvent, Update

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    def draw(self, registry: TaskRegistry, *, final: bool = False) -> None: ...

    def close(self) -> None: ...


class Reporter:
    """The single consumer of worker events and the only writer of the registry."""

    def __init__(
        self,
        registry: TaskRegistry,
        events: asyncio.Queue[TaskEvent | None],
        renderer: Renderer,
    ):
        self.registry = registry
        self.events = events
        self.renderer = renderer
        self.remaining = len(registry)
        self._finished = False

    async def run(self) -> None:
        while True:
            event = await self.events.get()
            if event is None:
                break
            self.apply(event)
            self._redraw()

        # nothing was ever completed, e.g. an empty run
        if not self._finished:
            self._finished = True
            self.renderer.draw(self.registry, final=True)

    def apply(self, event: TaskEvent) -> None:
        match event:
            case Update(id=task_id, status=status):
                self.registry.set_status(task_id, status)
                if status.is_completed:
                    self.remaining -= 1
            case Stderr(id=task_id, line=line):
                self.registry.push_stderr(task_id, line)
            case Stdout(id=task_id, content=content):
                self.registry.set_stdout(task_id, content)
            case _:
                raise TypeError(f"unknown event: {event!r}")

    def _redraw(self) -> None:
        if self._finished:
            return
        if self.remaining == 0:
            self._finished = True
            logger.debug("all %d task(s) completed", len(self.registry))
            self.renderer.draw(self.registry, final=True)
        else:
            self.renderer.draw(self.registry)
