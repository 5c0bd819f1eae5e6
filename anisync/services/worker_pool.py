"""
Bounded Worker Pool

A fixed number of asyncio worker tasks drain a prefilled queue. A failing
job is logged and recorded in its result; it never cancels sibling jobs.
"""

import asyncio
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from ..core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class JobResult(Generic[T, R]):
    """Outcome of one job: either a value or the exception it raised."""

    __slots__ = ("item", "value", "error")

    def __init__(self, item: T, value: Optional[R] = None, error: Optional[Exception] = None):
        self.item = item
        self.value = value
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self):
        state = "ok" if self.ok else f"error={self.error!r}"
        return f"<JobResult(item={self.item!r}, {state})>"


class WorkerPool:
    """Runs an async handler over items with at most `size` in flight."""

    def __init__(self, size: int, name: str = "pool"):
        self.size = max(1, size)
        self.name = name

    async def run(
        self,
        items: Sequence[T],
        handler: Callable[[T], Awaitable[R]],
    ) -> List[JobResult]:
        """
        Process every item and return results in input order.

        Args:
            items: Jobs to process
            handler: Coroutine function called once per item

        Returns:
            One JobResult per item
        """
        queue: asyncio.Queue = asyncio.Queue()
        for index, item in enumerate(items):
            queue.put_nowait((index, item))

        results: List[Any] = [None] * len(items)

        async def worker(worker_id: int):
            while True:
                try:
                    index, item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    value = await handler(item)
                    results[index] = JobResult(item, value=value)
                except Exception as e:
                    logger.error(
                        "worker_job_failed",
                        pool=self.name,
                        worker=worker_id,
                        item=repr(item),
                        error=str(e),
                    )
                    results[index] = JobResult(item, error=e)
                finally:
                    queue.task_done()

        worker_count = min(self.size, len(items))
        if worker_count:
            await asyncio.gather(*(worker(i) for i in range(worker_count)))
        return results
