"""Single-worker FIFO queue for download jobs."""

import asyncio
import itertools
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional

from mediabot.models.job import JobStatus, QueueJob, QueueTicket

logger = logging.getLogger(__name__)


class JobQueue:
    """Strict FIFO queue that runs at most one job at a time.

    The worker task is started by ``add`` when idle and stops once the queue
    drains; the next ``add`` starts a new one. The running job stays at the
    head of the queue until it settles, so positions count it.
    """

    def __init__(self):
        self._items: Deque[QueueJob] = deque()
        self._running = False
        self._worker: Optional[asyncio.Task] = None
        self._ids = itertools.count(1)

    def add(self, task: Callable[[], Awaitable[Any]]) -> QueueTicket:
        """Append a job and return its 1-based position plus completion future.

        Must be called from within the running event loop.
        """
        loop = asyncio.get_running_loop()
        job = QueueJob(
            job_id=f"job-{next(self._ids)}",
            task=task,
            completion=loop.create_future(),
        )
        self._items.append(job)
        position = len(self._items)

        logger.info(f"Queued {job.job_id} at position {position}")

        if not self._running:
            self._running = True
            self._worker = loop.create_task(self._process())

        return QueueTicket(position, job.completion)

    async def _process(self) -> None:
        try:
            while self._items:
                job = self._items[0]
                job.update_status(JobStatus.RUNNING)
                logger.info(f"Running {job.job_id} ({len(self._items) - 1} waiting)")

                try:
                    result = await job.task()
                except asyncio.CancelledError:
                    job.completion.cancel()
                    raise
                except Exception as e:
                    job.update_status(JobStatus.FAILED, str(e))
                    logger.error(f"{job.job_id} failed: {e}")
                    if not job.completion.done():
                        job.completion.set_exception(e)
                else:
                    job.update_status(JobStatus.COMPLETED)
                    logger.info(f"{job.job_id} completed")
                    if not job.completion.done():
                        job.completion.set_result(result)
                finally:
                    self._items.popleft()

        except asyncio.CancelledError:
            for job in self._items:
                if not job.completion.done():
                    job.completion.cancel()
            self._items.clear()
            raise
        finally:
            self._running = False
            self._worker = None

    async def shutdown(self) -> None:
        """Cancel the worker and every job still waiting."""
        worker = self._worker
        if worker is None:
            return

        worker.cancel()
        try:
            await worker
        except asyncio.CancelledError:
            pass
        logger.info("Job queue stopped")

    def size(self) -> int:
        return len(self._items)

    @property
    def is_running(self) -> bool:
        return self._running
