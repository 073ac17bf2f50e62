import asyncio
from asyncio import Semaphore, TaskGroup
from typing import Any, Coroutine


class Throttler:
    """Keeps at most a fixed number of tasks of a TaskGroup in flight.

    schedule() waits for a free slot before creating the task, so a producer walking a large
    tree does not materialize one pending task per file at once.
    """

    def __init__(self, task_group: TaskGroup, concurrency: int):
        """Initialize the throttler.

        Args:
            task_group: The TaskGroup to which tasks will be added
            concurrency: Maximum number of tasks running at the same time
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1: {concurrency}")

        self._task_group = task_group
        self._semaphore = Semaphore(concurrency)

    async def schedule(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        """Wait for a free slot, then run coro as a task of the group.

        The slot is released when the task finishes, whether it succeeds or fails.
        """
        await self._semaphore.acquire()

        async def wrapper():
            try:
                return await coro
            finally:
                self._semaphore.release()

        try:
            return self._task_group.create_task(wrapper(), name=name)
        except BaseException:
            self._semaphore.release()
            coro.close()
            raise
