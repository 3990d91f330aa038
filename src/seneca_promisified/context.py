"""
Awaitable wrapper around a callback-based Seneca-style instance.

Every asynchronous entry point of the wrapped instance (``act``, ``close``,
``ready``, ``prior``, pinned functions) is exposed as a method returning an
``asyncio.Future``. Handlers and plugins registered through the wrapper
receive a wrapped context instead of the raw one, so they can ``await``
calls of their own.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from .bridge import Continuation, chain_awaitable, promisify
from .config import Settings, get_settings
from .errors import InvalidHandlerError, NotInActionError, UnknownExtensionError
from .extensions import ExtensionRegistry, default_extensions
from .logging import CallLog, Timer, describe_pattern, get_logger

Handler = Callable[[Any, "SenecaPromisified"], Any]
Plugin = Callable[..., Any]


class SenecaPromisified:
    """
    Wraps a callback-based instance so its async API returns futures.

    The wrapper owns a single delegate and never shares it. ``log`` is the
    delegate's own log handle.

    Example:
        ```python
        seneca = SenecaPromisified(raw_seneca)

        seneca.add({"cmd": "ping"}, lambda args, ctx: {"pong": True})
        result = await seneca.act({"cmd": "ping"})
        ```
    """

    def __init__(
        self,
        seneca: Any,
        *,
        extensions: ExtensionRegistry | None = None,
        settings: Settings | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._seneca = seneca
        self._extensions = extensions if extensions is not None else default_extensions
        self._settings = settings
        self._in_action = False
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        self._loop = loop
        self.log = getattr(seneca, "log", None)

    @classmethod
    def wrap(cls, seneca: Any, **kwargs: Any) -> SenecaPromisified:
        """Alternate constructor."""
        return cls(seneca, **kwargs)

    @property
    def seneca(self) -> Any:
        """The wrapped callback-based instance."""
        return self._seneca

    @property
    def settings(self) -> Settings:
        return self._settings if self._settings is not None else get_settings()

    @property
    def extensions(self) -> ExtensionRegistry:
        return self._extensions

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails.
        if name.startswith("_"):
            raise AttributeError(name)
        bound = self._extensions.bind(name, self)
        if bound is None:
            raise UnknownExtensionError(type(self).__name__, name)
        return bound

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._seneca!r})"

    def create(self, seneca: Any) -> SenecaPromisified:
        """
        Wrap another raw instance the same way as this one.

        Handler contexts, plugin contexts and delegates are all built through
        this method. Subclasses that change the constructor signature should
        override it so those contexts are instances of the subclass.
        """
        return type(self)(
            seneca,
            extensions=self._extensions,
            settings=self._settings,
            loop=self._loop,
        )

    # =========================================================================
    # Bridged calls
    # =========================================================================

    def _call(self, operation: str, fn: Callable[..., Any], *args: Any, with_result: bool = True, pattern: Any = None) -> asyncio.Future:
        logger = get_logger()
        described = describe_pattern(pattern) if pattern is not None else None
        timer = Timer()
        with logger.trace_context(operation=operation, pattern=described) as trace_id:
            logger.log_dispatch(operation, described)
            future = promisify(fn, operation=operation, with_result=with_result)(*args)

        def on_settled(settled: asyncio.Future) -> None:
            failed = not settled.cancelled() and settled.exception() is not None
            logger.log_call(
                CallLog(
                    operation=operation,
                    trace_id=trace_id,
                    pattern=described,
                    success=not settled.cancelled() and not failed,
                    error=repr(settled.exception()) if failed else None,
                    duration_ms=timer.stop(),
                )
            )

        future.add_done_callback(on_settled)
        return future

    def act(self, *args: Any) -> asyncio.Future:
        """
        Invoke an action.

        All arguments are handed to the wrapped ``act`` unchanged; the
        continuation is appended.

        Example:
            ```python
            # These all do the same thing...
            await seneca.act("foo:true,bar:false")
            await seneca.act({"foo": True, "bar": False})
            await seneca.act("foo:true", {"bar": False})
            ```
        """
        return self._call("act", self._seneca.act, *args, pattern=args[0] if args else None)

    def prior(self, *args: Any) -> asyncio.Future:
        """
        Invoke the handler registered before the current one for the same pattern.

        Only available on the context handed to an action handler.

        Example:
            ```python
            seneca.add({"foo": "bar"}, lambda args, ctx: {"response": 1})

            async def bump(args, ctx):
                previous = await ctx.prior(args)
                return {"response": previous["response"] + 1}

            seneca.add({"foo": "bar"}, bump)
            await seneca.act({"foo": "bar"})  # {"response": 2}
            ```
        """
        if not self._in_action:
            raise NotInActionError("prior")
        return self._call("prior", self._seneca.prior, *args, pattern=args[0] if args else None)

    def close(self) -> asyncio.Future:
        """Close the wrapped instance, including connections opened by ``listen``."""
        return self._call("close", self._seneca.close, with_result=False)

    def ready(self) -> asyncio.Future:
        """Resolve once the wrapped instance has finished loading."""
        return self._call("ready", self._seneca.ready, with_result=False)

    def pin(self, pattern: Any) -> dict[str, Callable[..., asyncio.Future]]:
        """
        Bind the actions matching ``pattern`` to named functions.

        Example:
            ```python
            pin = seneca.pin({"cmd": "*", "entity": "person"})

            await pin["load"]({})  # same as act({"cmd": "load", "entity": "person"})
            await pin["save"]({})
            ```
        """
        pinned = self._seneca.pin(pattern)
        return {
            key: promisify(fn, operation=f"pin.{key}")
            for key, fn in pinned.items()
        }

    # =========================================================================
    # Registration
    # =========================================================================

    def _handle_result(self, res: Any, done: Continuation) -> None:
        if inspect.isawaitable(res):
            chain_awaitable(res, done, loop=self._loop)
        elif isinstance(res, BaseException):
            done(res)
        else:
            done(None, res)

    def _enter_action(self) -> SenecaPromisified:
        self._in_action = True
        return self

    def add(self, pattern: Any, *rest: Any) -> None:
        """
        Register an action handler.

        Called as ``add(pattern, handler)`` or ``add(pattern, config, handler)``.
        The handler receives ``(args, context)`` where ``context`` is a fresh
        wrapped context supporting ``prior``. It may return a plain value, an
        exception (reported as a failure) or an awaitable.

        Example:
            ```python
            async def foobar(args, ctx):
                return "FOOBAR"

            seneca.add({"cmd": "foobar"}, foobar)
            ```
        """
        if len(rest) not in (1, 2):
            raise InvalidHandlerError("add() takes a pattern, an optional config and a handler")
        handler = rest[-1]
        if not callable(handler):
            raise InvalidHandlerError(f"Handler for {describe_pattern(pattern)} is not callable")
        described = describe_pattern(pattern)

        @wraps(handler)
        def wrapped_handler(args: Any, seneca: Any, done: Continuation) -> None:
            context = self.create(seneca)._enter_action()
            try:
                res = handler(args, context)
            except Exception as exc:
                res = exc
            try:
                self._handle_result(res, done)
            except Exception as exc:
                get_logger().log_error(exc, "handler result could not be delivered", pattern=described)
                done(exc)

        get_logger().debug("handler registered", pattern=described)
        self._seneca.add(pattern, *rest[:-1], wrapped_handler)

    def use(self, plugin: str | Plugin, *args: Any) -> Any:
        """
        Load a plugin.

        Plugins given by name are passed to the wrapped instance unchanged and
        its return value is returned. Plugin functions are called with a
        wrapped context, followed by any options the wrapped instance supplies.

        Example:
            ```python
            def ping_plugin(seneca):
                seneca.add({"cmd": "ping"}, lambda args, ctx: ctx.act({"cmd": "pong"}))

            seneca.use(ping_plugin)
            ```
        """
        if isinstance(plugin, str):
            return self._seneca.use(plugin, *args)
        if not callable(plugin):
            raise InvalidHandlerError("use() expects a plugin name or a plugin function")

        @wraps(plugin)
        def loader(seneca: Any, *options: Any) -> Any:
            return plugin(self.create(seneca), *options)

        get_logger().debug("plugin loaded", plugin=getattr(plugin, "__name__", repr(plugin)))
        self._seneca.use(loader, *args)
        return None

    def delegate(self, *args: Any) -> SenecaPromisified:
        """
        Return a wrapped delegate that adds fixed arguments to every action.

        Example:
            ```python
            delegated = seneca.delegate({"safe": False})
            # The submitted args will also carry `safe`.
            await delegated.act({"cmd": "ping"})
            ```
        """
        return self.create(self._seneca.delegate(*args))

    def listen(self, *args: Any, **kwargs: Any) -> None:
        """Open a listener on the wrapped instance. Fire and forget."""
        self._seneca.listen(*args, **kwargs)


def promisify_seneca(seneca: Any, **kwargs: Any) -> SenecaPromisified:
    """Wrap a callback-based instance. See ``SenecaPromisified``."""
    return SenecaPromisified(seneca, **kwargs)


__all__ = [
    "Handler",
    "Plugin",
    "SenecaPromisified",
    "promisify_seneca",
]
