import asyncio
import logging

logger = logging.getLogger("session_controller")


class SessionController:
    """Owns the background tasks of one session and tears them down together."""

    def __init__(self):
        self.stop_event = asyncio.Event()
        self.tasks: set[asyncio.Task] = set()

    def create_task(self, coro, name: str | None = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self.tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self.tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Session task failed | task=%s err=%s", task.get_name(), exc)

    async def stop(self):
        if not self.stop_event.is_set():
            self.stop_event.set()

        current = asyncio.current_task()
        pending = [task for task in self.tasks if task is not current]
        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)
