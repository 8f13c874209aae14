import asyncio
from asyncio import Task
from typing import Any, Awaitable, Callable, Optional, Set


class ConcurrencyHelper:
    """
    Tracks coroutines spawned from signal callbacks on the host loop so the
    owning component can cancel them during teardown.
    """

    def __init__(self, logger: Any, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.logger = logger
        self._loop = loop
        self._running_tasks: Set[Task] = set()

    @property
    def running_tasks(self) -> Set[Task]:
        return set(self._running_tasks)

    def run_in_async_task(
        self,
        coro: Awaitable[Any],
        on_finish: Optional[Callable[[Any], None]] = None,
    ) -> Task:
        """
        Schedules an awaitable as a task on the running loop. Exceptions are
        logged, never re-raised; ``on_finish`` receives the result.
        """
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(coro)  # pyright: ignore
        self._running_tasks.add(task)
        coro_name = getattr(coro, "__qualname__", repr(coro).split(" object")[0])

        def done_callback(task: Task):
            self._running_tasks.discard(task)
            if task.cancelled():
                self.logger.debug(f"Async coroutine {coro_name} cancelled.")
                return
            exception = task.exception()
            if exception:
                self.logger.error(
                    f"Async coroutine {coro_name} execution failed: {exception}",
                    exc_info=exception,
                )
            elif on_finish:
                try:
                    on_finish(task.result())
                except Exception as e:
                    self.logger.error(
                        f"Error processing completion of async coroutine {coro_name}: {e}",
                        exc_info=True,
                    )

        task.add_done_callback(done_callback)
        return task

    def cleanup_tasks(self) -> None:
        """Cancels every task that is still running."""
        for task in list(self._running_tasks):
            if not task.done():
                task.cancel()
                self.logger.debug(f"Cancelled async task: {task.get_name()}")
        self._running_tasks.clear()
