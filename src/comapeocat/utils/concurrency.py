"""Async primitives shared by the archive reader and writer."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


class AsyncLazy(Generic[T]):
    """Memoize one awaitable result shared by every concurrent awaiter.

    The factory runs at most once. Its result, or its exception, is returned to every
    caller. Cancelling one awaiter does not cancel the shared computation.
    """

    __slots__ = ("_factory", "_task")

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._task: asyncio.Future[T] | None = None

    @property
    def started(self) -> bool:
        return self._task is not None

    async def get(self) -> T:
        if self._task is None:
            self._task = asyncio.ensure_future(self._factory())
        return await asyncio.shield(self._task)

    def peek(self) -> T | None:
        """Return the settled result, or ``None`` while pending or after a failure."""

        task = self._task
        if task is None or not task.done() or task.cancelled() or task.exception() is not None:
            return None
        return task.result()


__all__ = ["AsyncLazy"]
