import asyncio
from asyncio import TaskGroup, Semaphore


class Throttler:
    """Limits the number of simultaneously running tasks in a TaskGroup.

    schedule() blocks the caller until a permit is free, so a producer looping over a
    large index never creates more than `concurrency` pending tasks at a time.
    """

    def __init__(self, task_group: TaskGroup, concurrency: int):
        """Initialize the throttler.

        Args:
            task_group: The TaskGroup to which tasks will be added
            concurrency: Maximum number of tasks that can run concurrently
        """
        self._task_group = task_group
        self._semaphore = Semaphore(concurrency)

    async def schedule(self, coro, name=None) -> asyncio.Task:
        """Schedule a coroutine once a permit is available.

        The permit is released when the coroutine finishes, successfully or not.

        Args:
            coro: The coroutine to execute
            name: Optional name for the task

        Returns:
            The created asyncio.Task
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
