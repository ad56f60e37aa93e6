"""Deferred values: a value now, an awaitable value, or an async stream of values.

Matchers, handlers and actions may return any of the three. The helpers here
give the rest of the package one way to consume them.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Coroutine
from typing import Any, TypeVar, Union

T = TypeVar("T")

Deferred = Union[T, Awaitable[T], AsyncIterable[T]]


async def iterate(value: Deferred[T]) -> AsyncIterator[T]:
    """Yield every value produced by `value`, in order."""
    if isinstance(value, AsyncIterable):
        async for item in value:
            yield item
        return
    if inspect.isawaitable(value):
        async for item in iterate(await value):
            yield item
        return
    yield value


async def first_value(value: Deferred[T], default: Any = None) -> T | Any:
    """Resolve `value` to its first item.

    A stream is closed as soon as its first item arrives; an empty stream
    resolves to `default`.
    """
    if isinstance(value, AsyncIterable):
        iterator = aiter(value)
        try:
            return await anext(iterator)
        except StopAsyncIteration:
            return default
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
    if inspect.isawaitable(value):
        return await first_value(await value, default)
    return value


async def settle(value: Deferred[T]) -> list[T]:
    """Run `value` to completion and return everything it produced."""
    return [item async for item in iterate(value)]


def start_task(coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
    """Start `coro` as a task that runs synchronously until it first suspends.

    A coroutine that never suspends is already done when this returns.
    """
    return asyncio.Task(coro, loop=asyncio.get_running_loop(), eager_start=True)


async def cancel_pending(tasks: list[asyncio.Task]) -> None:
    """Cancel every unfinished task in `tasks` and wait for them to unwind."""
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
