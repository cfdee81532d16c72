"""Bounded fire-and-forget job queue for side effects.

Jobs are zero-argument coroutine factories drained by a small pool of
worker tasks. ``submit`` never blocks the caller; when the queue is full the
job is dropped and logged. A failing job is logged and never stops its
worker.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional

from ....infrastructure.logging.structured_logging import warning as log_warning, error as log_error

Job = Callable[[], Awaitable[object]]


class ActionQueue:
    def __init__(self, workers: int = 4, maxsize: int = 1000):
        self.workers = max(1, workers)
        self.maxsize = max(1, maxsize)
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []
        self.dropped = 0

    def _ensure_started(self) -> asyncio.Queue:
        # Created lazily so the queue binds to whichever loop first submits.
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.maxsize)
            self._tasks = [asyncio.create_task(self._worker(i)) for i in range(self.workers)]
        return self._queue

    def submit(self, job: Job) -> bool:
        queue = self._ensure_started()
        try:
            queue.put_nowait(job)
        except asyncio.QueueFull:
            self.dropped += 1
            log_warning("action.queue.full", dropped=self.dropped, maxsize=self.maxsize)
            return False
        return True

    async def _worker(self, index: int):
        queue = self._queue
        assert queue is not None
        while True:
            job = await queue.get()
            try:
                await job()
            except Exception as e:  # noqa: BLE001
                log_error("action.queue.job_error", worker=index, error=str(e))
            finally:
                queue.task_done()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def drain(self):
        """Wait until every submitted job has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self):
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._queue = None


__all__ = ["ActionQueue", "Job"]
