"""Thin sync wrappers for the future-returning API.

These are primarily for scripting and testing contexts where no event
loop is running.

Key design:
- Uses asyncio.run() when no event loop is active
- Raises EventLoopError if called inside an existing event loop
- Clear error messages guide users to the async alternative
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from .errors import EventLoopError

if TYPE_CHECKING:
    from .context import SenecaPromisified

T = TypeVar("T")


def _run(operation: str, start: Callable[[], Awaitable[T]]) -> T:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        raise EventLoopError(
            operation,
            f"{operation}_sync() cannot be called inside an async context. "
            f"Use 'await seneca.{operation}()' instead.",
        )

    async def main() -> T:
        # The future has to be created inside the loop asyncio.run() starts.
        return await start()

    return asyncio.run(main())


def act_sync(seneca: SenecaPromisified, *args: Any) -> Any:
    """Sync wrapper for SenecaPromisified.act.

    Args:
        seneca: The wrapped context.
        *args: Arguments for ``act``.

    Returns:
        The action's result.

    Raises:
        EventLoopError: If called inside an existing async event loop.
    """
    return _run("act", lambda: seneca.act(*args))


def ready_sync(seneca: SenecaPromisified) -> None:
    """Sync wrapper for SenecaPromisified.ready."""
    _run("ready", seneca.ready)


def close_sync(seneca: SenecaPromisified) -> None:
    """Sync wrapper for SenecaPromisified.close."""
    _run("close", seneca.close)


__all__ = ["act_sync", "ready_sync", "close_sync"]
