from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from chatsync.core.errors import CommandResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchPolicy = Callable[[Callable[[], Awaitable[CommandResult[Any]]]], Awaitable[CommandResult[Any]]]


async def fetch_once(fetch: Callable[[], Awaitable[CommandResult[T]]]) -> CommandResult[T]:
    return await fetch()


class PendingTasks:
    """Keeps background resolutions alive until they finish."""

    def __init__(self, owner: str) -> None:
        self._owner = owner
        self._tasks: set[asyncio.Task[None]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("No running event loop, resolution dropped owner=%s", self._owner)
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background resolution failed owner=%s error=%r", self._owner, exc)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
