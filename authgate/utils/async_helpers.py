"""Async utility functions for running async code in sync contexts."""

import asyncio
from typing import Any, Coroutine, TypeVar

T = TypeVar('T')


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run an async coroutine in a sync context.

    Used by Celery tasks and CLI commands that drive the async storage layer.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine

    Raises:
        RuntimeError: If called from inside a running event loop
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    coro.close()
    raise RuntimeError("Cannot run async code from within an event loop")

