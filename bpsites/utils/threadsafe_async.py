from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TYPE_CHECKING
from typing import Any
from typing import TypeVar

if TYPE_CHECKING:
    import concurrent.futures

T = TypeVar("T")


def schedule_coroutine_threadsafe(
    coro: Coroutine[Any, Any, T],
    loop: asyncio.AbstractEventLoop,
) -> concurrent.futures.Future[T]:
    """Schedule ``coro`` on ``loop`` from any thread and return its future.

    Raises:
        RuntimeError: If the target event loop is closed or not running.
    """
    if loop.is_closed() or not loop.is_running():
        coro.close()
        raise RuntimeError("Target event loop is not running")

    try:
        return asyncio.run_coroutine_threadsafe(coro, loop)
    except Exception:
        coro.close()
        raise


def await_on_loop(
    coro: Coroutine[Any, Any, T],
    loop: asyncio.AbstractEventLoop,
) -> asyncio.Future[T]:
    """Run ``coro`` on ``loop`` and return a future awaitable from the calling loop."""
    return asyncio.wrap_future(schedule_coroutine_threadsafe(coro, loop))
