"""Request coalescing shared across the client services.

The :func:`coalesced` decorator wraps an async service method so that
concurrent invocations resolving to the same key share one in-flight task.
The first caller starts the task; later callers await the same result until
it completes, after which the next call starts a fresh fetch. Waiters are
shielded from each other: cancelling one waiter never cancels the shared
task.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, Concatenate, ParamSpec, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

KeyBuilder = Callable[Concatenate["CoalescingService", P], str | None]
DecoratedCallable = Callable[Concatenate["CoalescingService", P], Awaitable[T]]


class CoalescingService:
    """Base class tracking the in-flight task of every coalesced key."""

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task[Any]] = {}

    def inflight_keys(self) -> list[str]:
        """Return the keys that currently have a fetch in progress."""

        return list(self._inflight)

    async def _join_inflight(
        self, key: str, factory: Callable[[], Awaitable[T]]
    ) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            logger.debug("Joining in-flight fetch for %s", key)
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]


def coalesced(
    key_builder: KeyBuilder[P],
) -> Callable[[DecoratedCallable[P, T]], DecoratedCallable[P, T]]:
    """Decorate an async service method so concurrent calls share one task.

    Parameters
    ----------
    key_builder:
        Callable that returns the coalescing key for the invocation. Returning
        ``None`` runs the method without coalescing.
    """

    def decorator(func: DecoratedCallable[P, T]) -> DecoratedCallable[P, T]:
        @wraps(func)
        async def wrapper(
            self: CoalescingService, *args: P.args, **kwargs: P.kwargs
        ) -> T:
            key = key_builder(self, *args, **kwargs)
            if not key:
                return await func(self, *args, **kwargs)
            return await self._join_inflight(key, lambda: func(self, *args, **kwargs))

        return wrapper

    return decorator


__all__ = ["CoalescingService", "coalesced"]
