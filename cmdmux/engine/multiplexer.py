from __future__ import annotations

import asyncio
import logging
import signal
from datetime import datetime, timezone

from .dashboard import Dashboard
from .pool import TERMINATE_GRACE_S, WorkerPool
from .registry import TaskRegistry
from .reporter import Renderer, Reporter
from .types import Result, RunInterrupted, RunMetadata, TaskEvent

logger = logging.getLogger(__name__)

INTERRUPT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Multiplexer:
    """Runs every command once and returns the captured stdout of each.

    The run ends on whichever comes first: an interrupt, the worker pool
    draining, or the reporter draining. An interrupt terminates the child
    processes still alive and raises RunInterrupted instead of returning.
    """

    def __init__(
        self,
        program: list[str],
        commands: list[str],
        *,
        stderr_tail: int = 3,
        parallelism: int | None = None,
        renderer: Renderer | None = None,
        terminate_grace: float = TERMINATE_GRACE_S,
    ):
        self.program = list(program)
        self.registry = TaskRegistry(commands, stderr_tail)
        self.parallelism = parallelism or max(len(commands), 1)
        self.renderer = renderer if renderer is not None else Dashboard()
        self.terminate_grace = terminate_grace
        self._signame: str | None = None

    async def run(
        self,
        interrupt: asyncio.Event | None = None,
        *,
        handle_signals: bool = True,
    ) -> Result:
        loop = asyncio.get_running_loop()
        if interrupt is None:
            interrupt = asyncio.Event()
        installed = self._install_signal_handlers(loop, interrupt) if handle_signals else []

        events: asyncio.Queue[TaskEvent | None] = asyncio.Queue()
        pool = WorkerPool(self.program, self.parallelism, events)
        reporter = Reporter(self.registry, events, self.renderer)

        logger.info(
            "running %d command(s), parallelism %d", len(self.registry), self.parallelism
        )
        started = _now()
        pool_task = asyncio.create_task(
            pool.run([(task.id, task.command) for task in self.registry]), name="pool"
        )
        reporter_task = asyncio.create_task(reporter.run(), name="reporter")
        interrupt_task = asyncio.create_task(interrupt.wait(), name="interrupt")

        try:
            done, _ = await asyncio.wait(
                {interrupt_task, pool_task, reporter_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            ended = _now()

            if pool_task not in done and reporter_task not in done:
                await self._abort(pool, pool_task, reporter_task)
                raise RunInterrupted(self._signame or "interrupt")

            # the channel is closed once the pool drains, so this only
            # flushes events already queued
            await pool_task
            await reporter_task
        finally:
            interrupt_task.cancel()
            for signum in installed:
                loop.remove_signal_handler(signum)
            self.renderer.close()

        logger.info("run completed in %.3fs", (ended - started).total_seconds())
        return self.registry.snapshot(RunMetadata(started=started, ended=ended))

    async def _abort(
        self,
        pool: WorkerPool,
        pool_task: asyncio.Task,
        reporter_task: asyncio.Task,
    ) -> None:
        logger.warning("interrupted, aborting run")
        await pool.terminate_children(self.terminate_grace)
        pool_task.cancel()
        reporter_task.cancel()
        await asyncio.gather(pool_task, reporter_task, return_exceptions=True)

    def _install_signal_handlers(
        self, loop: asyncio.AbstractEventLoop, interrupt: asyncio.Event
    ) -> list[int]:
        installed = []
        for signum in INTERRUPT_SIGNALS:
            try:
                loop.add_signal_handler(signum, self._on_signal, interrupt, signum)
            except (NotImplementedError, RuntimeError, ValueError) as exc:
                logger.debug("can't watch %s: %s", signal.Signals(signum).name, exc)
                continue
            installed.append(signum)
        return installed

    def _on_signal(self, interrupt: asyncio.Event, signum: int) -> None:
        self._signame = signal.Signals(signum).name
        logger.warning("received %s", self._signame)
        interrupt.set()
