"""Bounded-concurrency FIFO scheduler for job executions."""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Set

logger = logging.getLogger(__name__)

ExecutionFn = Callable[[], Awaitable[None]]


@dataclass
class QueueEntry:
    job_id: str
    execution_fn: ExecutionFn


class Scheduler:
    """FIFO queue of pending executions with at most max_concurrent running at once.

    Dispatch happens on enqueue and whenever a started execution finishes; both run on the
    event loop thread, so the queue and the running counter need no further locking.
    Executions record their own outcome into the JobStore; the scheduler only tracks
    completion and never retries.
    """

    def __init__(self, max_concurrent: int):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.max_concurrent = max_concurrent
        self._queue: Deque[QueueEntry] = deque()
        self._running = 0
        self._tasks: Set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def running(self) -> int:
        return self._running

    @property
    def queued(self) -> int:
        return len(self._queue)

    def enqueue(self, job_id: str, execution_fn: ExecutionFn) -> None:
        """Append an execution and run a dispatch pass. Must be called from the event loop thread."""
        self._queue.append(QueueEntry(job_id, execution_fn))
        self._idle.clear()
        logger.info("Job enqueued", extra={"job_id": job_id, "queued": len(self._queue), "running": self._running})
        self._dispatch()

    def _dispatch(self) -> None:
        loop = asyncio.get_running_loop()
        while self._running < self.max_concurrent and self._queue:
            entry = self._queue.popleft()
            self._running += 1
            task = loop.create_task(self._run(entry), name=f"job-{entry.job_id}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        if self._running == 0 and not self._queue:
            self._idle.set()

    async def _run(self, entry: QueueEntry) -> None:
        logger.debug("Job dispatched", extra={"job_id": entry.job_id})
        try:
            await entry.execution_fn()
        except Exception:
            logger.error("Execution for job %s raised past its own error handling", entry.job_id, exc_info=True)
        finally:
            self._running -= 1
            self._dispatch()

    async def join(self) -> None:
        """Wait until the queue is drained and no execution is running."""
        await self._idle.wait()
