"""Continuation-to-future bridging.

Every asynchronous entry point of the wrapped framework takes a trailing
``callback(err, result)``. This module turns such calls into
``asyncio.Future`` objects, and turns awaitables produced by user handlers
back into continuation calls.

Key design:
- The delegate call is issued before the future is returned
- First settlement wins; later continuation calls are ignored
- Continuations fired from another thread are marshalled onto the future's loop
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from concurrent.futures import Future as ConcurrentFuture
from functools import partial, wraps
from typing import Any, TypeVar

from .errors import EventLoopError, as_exception

T = TypeVar("T")

Continuation = Callable[..., None]

# Strong references to handler tasks; the loop only keeps weak ones.
_pending: set[asyncio.Future] = set()


def running_loop(operation: str) -> asyncio.AbstractEventLoop:
    """Return the running loop, or raise EventLoopError naming ``operation``."""
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        raise EventLoopError(operation) from None


def _on_loop_thread(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


def _settle(future: asyncio.Future, err: Any, result: Any) -> None:
    if future.done():
        return
    if err is not None:
        future.set_exception(as_exception(err))
    else:
        future.set_result(result)


def completes_future(future: asyncio.Future, *, with_result: bool = True) -> Continuation:
    """
    Build a continuation that settles ``future``.

    Args:
        future: Future to settle.
        with_result: When False the future resolves with ``None`` whatever
            result the continuation receives (used for close/ready).

    Returns:
        ``callback(err=None, result=None)``; a non-``None`` ``err`` rejects.
    """
    loop = future.get_loop()

    def callback(err: Any = None, result: Any = None) -> None:
        value = result if with_result else None
        if _on_loop_thread(loop):
            _settle(future, err, value)
        else:
            loop.call_soon_threadsafe(_settle, future, err, value)

    return callback


def promisify(
    fn: Callable[..., Any],
    *,
    operation: str | None = None,
    with_result: bool = True,
) -> Callable[..., asyncio.Future]:
    """
    Adapt a continuation-taking callable into one returning a future.

    The continuation is appended after the positional arguments.

    Example:
        ```python
        act = promisify(seneca.act)
        result = await act({"cmd": "ping"})
        ```
    """
    name = operation or getattr(fn, "__name__", "call")

    @wraps(fn)
    def call(*args: Any, **kwargs: Any) -> asyncio.Future:
        future = running_loop(name).create_future()
        try:
            fn(*args, completes_future(future, with_result=with_result), **kwargs)
        except Exception as exc:
            if future.done():
                raise
            future.set_exception(exc)
        return future

    return call


def _forward(done: Continuation, future: asyncio.Future | ConcurrentFuture) -> None:
    if future.cancelled():
        done(asyncio.CancelledError())
        return
    exc = future.exception()
    if exc is not None:
        done(exc)
    else:
        done(None, future.result())


def map_future(source: asyncio.Future, fn: Callable[[Any], Any]) -> asyncio.Future:
    """Return a future resolving with ``fn(result)`` once ``source`` resolves.

    Rejections and cancellation pass through unchanged. An exception raised
    by ``fn`` rejects the returned future.
    """
    target = source.get_loop().create_future()

    def relay(settled: asyncio.Future) -> None:
        if target.done():
            return
        if settled.cancelled():
            target.cancel()
            return
        exc = settled.exception()
        if exc is not None:
            target.set_exception(exc)
            return
        try:
            target.set_result(fn(settled.result()))
        except Exception as err:
            target.set_exception(err)

    source.add_done_callback(relay)
    return target


async def _await(awaitable: Awaitable[T]) -> T:
    return await awaitable


def chain_awaitable(
    awaitable: Awaitable[Any],
    done: Continuation,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> None:
    """
    Forward the outcome of ``awaitable`` to ``done(err, result)``.

    Runs on the current thread's loop when there is one, otherwise on
    ``loop`` via ``run_coroutine_threadsafe``.
    """
    try:
        current = asyncio.get_running_loop()
    except RuntimeError:
        current = None

    if current is not None:
        task = asyncio.ensure_future(awaitable)
        _pending.add(task)
        task.add_done_callback(_pending.discard)
        task.add_done_callback(partial(_forward, done))
        return

    if loop is None or loop.is_closed():
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise EventLoopError(
            "add",
            "Handler returned an awaitable outside of a running event loop "
            "and no loop is bound to the context",
        )

    asyncio.run_coroutine_threadsafe(_await(awaitable), loop).add_done_callback(
        partial(_forward, done)
    )


__all__ = [
    "Continuation",
    "running_loop",
    "completes_future",
    "promisify",
    "chain_awaitable",
    "map_future",
]
