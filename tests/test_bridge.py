"""Tests for continuation-to-future bridging."""

from __future__ import annotations

import asyncio
import threading

import pytest

from seneca_promisified.bridge import (
    _pending,
    chain_awaitable,
    completes_future,
    map_future,
    promisify,
)
from seneca_promisified.errors import DelegateError, EventLoopError


class TestCompletesFuture:
    """Test the continuation built for a future."""

    @pytest.mark.asyncio
    async def test_resolves_with_result(self):
        """Test resolves with result."""
        future = asyncio.get_running_loop().create_future()
        completes_future(future)(None, {"pong": True})
        assert await future == {"pong": True}

    @pytest.mark.asyncio
    async def test_rejects_with_same_exception(self):
        """Test rejects with same exception."""
        future = asyncio.get_running_loop().create_future()
        err = ValueError("boom")
        completes_future(future)(err)

        with pytest.raises(ValueError) as exc_info:
            await future
        assert exc_info.value is err

    @pytest.mark.asyncio
    async def test_non_exception_error_is_wrapped(self):
        """Test non exception error is wrapped."""
        future = asyncio.get_running_loop().create_future()
        completes_future(future)("not found")

        with pytest.raises(DelegateError) as exc_info:
            await future
        assert exc_info.value.value == "not found"

    @pytest.mark.asyncio
    async def test_first_call_wins(self):
        """Test first call wins."""
        future = asyncio.get_running_loop().create_future()
        callback = completes_future(future)
        callback(None, 1)
        callback(None, 2)
        callback(RuntimeError("late"))
        assert await future == 1

    @pytest.mark.asyncio
    async def test_without_result(self):
        """Test without result."""
        future = asyncio.get_running_loop().create_future()
        completes_future(future, with_result=False)(None, "ignored")
        assert await future is None

    @pytest.mark.asyncio
    async def test_settles_from_another_thread(self):
        """Test settles from another thread."""
        future = asyncio.get_running_loop().create_future()
        callback = completes_future(future)

        worker = threading.Thread(target=callback, args=(None, "from thread"))
        worker.start()
        result = await asyncio.wait_for(future, timeout=1.0)
        worker.join()

        assert result == "from thread"


class TestPromisify:
    """Test the generic adapter."""

    @pytest.mark.asyncio
    async def test_call_issued_before_await(self):
        """Test call issued before await."""
        calls = []

        def act(msg, callback):
            calls.append(msg)
            callback(None, msg["x"] * 2)

        future = promisify(act)({"x": 21})
        assert calls == [{"x": 21}]
        assert await future == 42

    @pytest.mark.asyncio
    async def test_keyword_arguments_forwarded(self):
        """Test keyword arguments forwarded."""
        def act(msg, callback, *, scale):
            callback(None, msg * scale)

        assert await promisify(act)(3, scale=2) == 6

    @pytest.mark.asyncio
    async def test_synchronous_raise_rejects(self):
        """Test synchronous raise rejects."""
        def broken(msg, callback):
            raise KeyError("missing")

        with pytest.raises(KeyError):
            await promisify(broken)({})

    @pytest.mark.asyncio
    async def test_deferred_continuation(self):
        """Test deferred continuation."""
        loop = asyncio.get_running_loop()

        def later(msg, callback):
            loop.call_later(0.01, callback, None, msg)

        assert await promisify(later)("done") == "done"

    def test_requires_running_loop(self):
        """Test requires running loop."""
        def act(msg, callback):
            callback(None, msg)

        with pytest.raises(EventLoopError, match="act"):
            promisify(act, operation="act")({})


class TestChainAwaitable:
    """Test forwarding awaitables to continuations."""

    @pytest.mark.asyncio
    async def test_result_forwarded(self):
        """Test result forwarded."""
        out = asyncio.get_running_loop().create_future()

        async def handler():
            await asyncio.sleep(0)
            return 42

        chain_awaitable(handler(), completes_future(out))
        assert await out == 42

    @pytest.mark.asyncio
    async def test_task_referenced_until_done(self):
        """Test the scheduled task is held until it settles."""
        out = asyncio.get_running_loop().create_future()
        release = asyncio.Event()

        async def handler():
            await release.wait()
            return "released"

        before = len(_pending)
        chain_awaitable(handler(), completes_future(out))
        assert len(_pending) == before + 1

        release.set()
        assert await out == "released"
        assert len(_pending) == before

    @pytest.mark.asyncio
    async def test_exception_forwarded(self):
        """Test exception forwarded."""
        out = asyncio.get_running_loop().create_future()
        err = RuntimeError("boom")

        async def handler():
            raise err

        chain_awaitable(handler(), completes_future(out))
        with pytest.raises(RuntimeError) as exc_info:
            await out
        assert exc_info.value is err

    @pytest.mark.asyncio
    async def test_future_forwarded(self):
        """Test future forwarded."""
        loop = asyncio.get_running_loop()
        out = loop.create_future()
        source = loop.create_future()

        chain_awaitable(source, completes_future(out))
        source.set_result("later")
        assert await out == "later"

    @pytest.mark.asyncio
    async def test_runs_on_bound_loop_from_other_thread(self):
        """Test runs on bound loop from other thread."""
        loop = asyncio.get_running_loop()
        out = loop.create_future()

        async def handler():
            return "threaded"

        worker = threading.Thread(
            target=chain_awaitable,
            args=(handler(), completes_future(out)),
            kwargs={"loop": loop},
        )
        worker.start()
        result = await asyncio.wait_for(out, timeout=1.0)
        worker.join()

        assert result == "threaded"

    def test_no_loop_raises(self):
        """Test no loop raises."""
        async def handler():
            return 1

        with pytest.raises(EventLoopError):
            chain_awaitable(handler(), lambda *args: None)


class TestMapFuture:
    """Test result transformation."""

    @pytest.mark.asyncio
    async def test_maps_result(self):
        """Test maps result."""
        source = asyncio.get_running_loop().create_future()
        mapped = map_future(source, lambda value: value + 1)
        source.set_result(1)
        assert await mapped == 2

    @pytest.mark.asyncio
    async def test_rejection_passes_through(self):
        """Test rejection passes through."""
        source = asyncio.get_running_loop().create_future()
        mapped = map_future(source, lambda value: value + 1)
        err = ValueError("nope")
        source.set_exception(err)

        with pytest.raises(ValueError) as exc_info:
            await mapped
        assert exc_info.value is err

    @pytest.mark.asyncio
    async def test_transform_error_rejects(self):
        """Test transform error rejects."""
        source = asyncio.get_running_loop().create_future()
        mapped = map_future(source, lambda value: value["missing"])
        source.set_result({})

        with pytest.raises(KeyError):
            await mapped
