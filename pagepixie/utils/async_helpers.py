"""
Async/sync compatibility helpers
"""

import asyncio
import inspect
import threading
from typing import Any, Awaitable, Callable, Optional, TypeVar

T = TypeVar('T')


def sync_wrapper(coro: Awaitable[T]) -> T:
    """
    Run async function in sync context
    Handles both cases: existing event loop and no event loop
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running event loop, safe to use asyncio.run
        return asyncio.run(coro)

    # We're in an async context, need to run in a new thread
    return _run_in_thread(coro)


def _run_in_thread(coro: Awaitable[T]) -> T:
    """Run coroutine in a separate thread with its own event loop"""
    result = {"value": None, "exception": None}

    def thread_target():
        new_loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(new_loop)
            result["value"] = new_loop.run_until_complete(coro)
        except Exception as e:
            result["exception"] = e
        finally:
            new_loop.close()

    thread = threading.Thread(target=thread_target)
    thread.start()
    thread.join()

    if result["exception"]:
        raise result["exception"]

    return result["value"]


async def notify(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    """Invoke an optional progress callback, awaiting it if it is a coroutine function"""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
