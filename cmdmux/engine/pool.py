from __future__ import annotations

import asyncio
import logging
import os
import signal
from asyncio.subprocess import DEVNULL, PIPE, Process

from .types import Outcome, Stderr, Stdout, TaskEvent, TaskStatus, Update

logger = logging.getLogger(__name__)

# Longest single stderr line accepted before the read counts as an I/O failure.
STREAM_LIMIT = 1024 * 1024

TERMINATE_GRACE_S = 3.0


class WorkerPool:
    """One worker per task, at most `parallelism` child processes alive at once.

    Workers never touch the task registry, they only put events on `events`.
    When every worker has finished, `None` is put on the queue to close it.
    """

    def __init__(
        self,
        program: list[str],
        parallelism: int,
        events: asyncio.Queue[TaskEvent | None],
    ):
        if parallelism < 1:
            raise ValueError(f"parallelism must be positive, got {parallelism}")
        self.program = list(program)
        self.parallelism = parallelism
        self.events = events
        self._permits = asyncio.Semaphore(parallelism)
        self._children: dict[int, Process] = {}
        self._closing = False

    @property
    def live_children(self) -> int:
        return len(self._children)

    async def run(self, commands: list[tuple[int, str]]) -> None:
        workers = [
            asyncio.create_task(self._worker(task_id, command), name=f"worker-{task_id}")
            for task_id, command in commands
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            for worker in workers:
                worker.cancel()
            # cancelled workers still reap their children
            await asyncio.gather(*workers, return_exceptions=True)
            self.events.put_nowait(None)

    async def _worker(self, task_id: int, command: str) -> None:
        async with self._permits:
            if self._closing:
                logger.debug("task %d: not started, pool is closing", task_id)
                return
            outcome = await self._execute(task_id, command)
            # completion is reported before the permit goes back
            self._emit(Update(task_id, TaskStatus.completed(outcome)))

    async def _execute(self, task_id: int, command: str) -> Outcome:
        argv = [*self.program, command]
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=DEVNULL,
                stdout=PIPE,
                stderr=PIPE,
                limit=STREAM_LIMIT,
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            logger.warning("task %d: spawn failed: %s", task_id, exc)
            return Outcome.failed(None)

        logger.debug("task %d: spawned pid %d", task_id, proc.pid)
        self._children[task_id] = proc
        self._emit(Update(task_id, TaskStatus.running()))

        # drained alongside stderr so a full stdout pipe can't stall the child
        stdout_reader = asyncio.create_task(proc.stdout.read())
        try:
            async for raw in proc.stderr:
                self._emit(Stderr(task_id, _decode_line(raw)))
            stdout = await stdout_reader
            self._emit(Stdout(task_id, stdout.decode("utf-8", errors="replace")))
            returncode = await proc.wait()
        except (OSError, ValueError) as exc:
            logger.warning("task %d: i/o failure: %s", task_id, exc)
            return Outcome.failed(None)
        finally:
            if not stdout_reader.done():
                stdout_reader.cancel()
            # reached with a live child on i/o failure or cancellation
            await _reap(proc)
            self._children.pop(task_id, None)

        logger.debug("task %d: exited with %s", task_id, returncode)
        return Outcome.from_returncode(returncode)

    async def terminate_children(self, grace: float = TERMINATE_GRACE_S) -> None:
        """SIGTERM every live child's process group, SIGKILL whatever outlives `grace`.

        No new child is spawned once this has been called, so permits freed
        during the grace period are not handed to queued tasks.
        """
        self._closing = True
        children = [proc for proc in self._children.values() if proc.returncode is None]
        if not children:
            return

        logger.warning("terminating %d running child process(es)", len(children))
        for proc in children:
            _signal_group(proc, signal.SIGTERM)

        waiters = [asyncio.create_task(proc.wait()) for proc in children]
        _, pending = await asyncio.wait(waiters, timeout=grace)
        if not pending:
            return

        for proc in children:
            if proc.returncode is None:
                logger.warning("pid %d ignored SIGTERM, killing", proc.pid)
                _signal_group(proc, signal.SIGKILL)
        await asyncio.gather(*pending, return_exceptions=True)

    def _emit(self, event: TaskEvent) -> None:
        self.events.put_nowait(event)


def _decode_line(raw: bytes) -> str:
    line = raw.decode("utf-8", errors="replace")
    return line.removesuffix("\n").removesuffix("\r")


def _signal_group(proc: Process, signum: int) -> None:
    try:
        os.killpg(os.getpgid(proc.pid), signum)
    except OSError as exc:
        logger.debug("process group signal failed for pid %d: %s", proc.pid, exc)
        try:
            proc.send_signal(signum)
        except ProcessLookupError:
            pass


async def _reap(proc: Process) -> None:
    if proc.returncode is None:
        _signal_group(proc, signal.SIGKILL)
    await proc.wait()
