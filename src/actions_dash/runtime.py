"""Message loop that runs commands in the background and feeds results back.

Commands execute concurrently as tracked asyncio tasks. Their result
messages are queued and applied one at a time by ``process_next``, so
``DashboardState.update`` never runs concurrently with itself.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable

from actions_dash.messages import Command, Message
from actions_dash.state import DashboardState

logger = logging.getLogger(__name__)

SHUTDOWN_GRACE = 0.5  # seconds


class MessageLoop:
    """Drives a ``DashboardState`` from a queue of completion messages."""

    def __init__(
        self,
        state: DashboardState,
        *,
        on_update: Callable[[DashboardState], None] | None = None,
    ) -> None:
        self.state = state
        self._on_update = on_update
        self._queue: asyncio.Queue[Message] = asyncio.Queue()
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def pending_tasks(self) -> int:
        return sum(1 for task in self._background_tasks if not task.done())

    def _track_task(self, coro) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    async def _execute(self, command: Command) -> None:
        msg = await command()
        if msg is not None and not self._closed:
            self._queue.put_nowait(msg)

    def dispatch(self, commands: Iterable[Command]) -> None:
        """Start each command in the background."""
        if self._closed:
            return
        for command in commands:
            self._track_task(self._execute(command))

    def post(self, msg: Message) -> None:
        """Enqueue a message directly, bypassing any command."""
        if not self._closed:
            self._queue.put_nowait(msg)

    async def process_next(self) -> Message:
        """Apply the next queued message and dispatch its follow-ups."""
        msg = await self._queue.get()
        follow_ups = self.state.update(msg)
        self.dispatch(follow_ups)
        if self._on_update is not None:
            self._on_update(self.state)
        return msg

    async def drain(self) -> None:
        """Apply messages until no task is running and the queue is empty."""
        while True:
            while not self._queue.empty():
                await self.process_next()
            pending = [task for task in self._background_tasks if not task.done()]
            if not pending:
                if self._queue.empty():
                    return
                continue
            await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)

    async def run(self) -> None:
        """Dispatch the initial commands and process messages until closed."""
        self.dispatch(self.state.init())
        while not self._closed:
            await self.process_next()

    async def aclose(self) -> None:
        """Stop log polling and cancel outstanding commands."""
        self._closed = True
        self.state.shutdown()
        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=SHUTDOWN_GRACE)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()


__all__ = [
    "MessageLoop",
]
