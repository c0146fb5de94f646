"""
Background executor for fire-and-forget click side effects.

Redirects must never wait on analytics, so click recording and counter
increments are submitted here and run on a small pool of worker tasks.

Architecture:
- Bounded asyncio queue (back-pressure by dropping, never by blocking)
- Fixed number of worker tasks draining the queue
- Every job failure is logged and swallowed; callers never observe it
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Job = Tuple[str, Callable[..., Awaitable[Any]], tuple]


class ClickTaskExecutor:
    """
    Runs submitted coroutine functions in the background.

    Features:
    - submit() is synchronous and non-blocking
    - Full queue drops the job with a warning
    - join() waits until everything submitted so far has run
    """

    def __init__(self, worker_count: int = 4, max_queue_size: int = 10000):
        """
        Initialize executor.

        Args:
            worker_count: Number of concurrent worker tasks
            max_queue_size: Pending jobs allowed before new ones are dropped
        """
        self.worker_count = worker_count
        self.max_queue_size = max_queue_size
        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []
        self.processed_count = 0
        self.failed_count = 0
        self.dropped_count = 0

    @property
    def running(self) -> bool:
        return bool(self._workers)

    async def start(self):
        """Start the worker tasks on the running event loop"""
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"click-worker-{i}")
            for i in range(self.worker_count)
        ]
        logger.info("Click executor started with %d workers", self.worker_count)

    def submit(self, description: str, func: Callable[..., Awaitable[Any]], *args) -> bool:
        """
        Schedule `func(*args)` to run in the background.

        Returns:
            True if queued, False if dropped (executor stopped or queue full)
        """
        if self._queue is None:
            self.dropped_count += 1
            logger.warning("Click executor not running, dropped job: %s", description)
            return False
        try:
            self._queue.put_nowait((description, func, args))
        except asyncio.QueueFull:
            self.dropped_count += 1
            logger.warning("Click queue full (%d), dropped job: %s", self.max_queue_size, description)
            return False
        return True

    async def join(self):
        """Wait until all queued jobs have been processed"""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self):
        """Drain pending jobs, then stop the workers"""
        if not self.running:
            return
        await self.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None
        logger.info(
            "Click executor stopped (processed=%d failed=%d dropped=%d)",
            self.processed_count, self.failed_count, self.dropped_count,
        )

    async def _worker(self, index: int):
        while True:
            description, func, args = await self._queue.get()
            try:
                await func(*args)
                self.processed_count += 1
            except asyncio.CancelledError:
                raise
            except Exception:
                self.failed_count += 1
                logger.exception("Background job failed: %s", description)
            finally:
                self._queue.task_done()
