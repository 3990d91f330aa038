"""
Tests for the sync wrappers.
"""

import pytest

from seneca_promisified import SenecaPromisified, Settings
from seneca_promisified.errors import EventLoopError
from seneca_promisified.sync import act_sync, close_sync, ready_sync


@pytest.fixture
def sync_seneca(raw_seneca, extensions):
    seneca = SenecaPromisified(raw_seneca, extensions=extensions, settings=Settings())
    seneca.add({"cmd": "ping"}, lambda args, ctx: {"pong": True})
    return seneca


class TestSyncWrappers:
    """Test running the future-returning API without a loop."""

    def test_act_sync(self, sync_seneca):
        """Test act sync."""
        assert act_sync(sync_seneca, {"cmd": "ping"}) == {"pong": True}

    def test_act_sync_async_handler(self, sync_seneca):
        """Test act sync async handler."""
        async def twice(args, ctx):
            first = await ctx.act({"cmd": "ping"})
            return {"both": [first, first]}

        sync_seneca.add({"cmd": "twice"}, twice)

        assert act_sync(sync_seneca, "cmd:twice") == {"both": [{"pong": True}, {"pong": True}]}

    def test_act_sync_error(self, sync_seneca):
        """Test act sync error."""
        with pytest.raises(LookupError):
            act_sync(sync_seneca, {"cmd": "missing"})

    def test_ready_and_close_sync(self, sync_seneca, raw_seneca):
        """Test ready and close sync."""
        assert ready_sync(sync_seneca) is None
        assert close_sync(sync_seneca) is None
        assert raw_seneca.closed is True

    def test_ready_sync_error(self, sync_seneca, raw_seneca):
        """Test ready sync error."""
        raw_seneca.ready_error = RuntimeError("not ready")

        with pytest.raises(RuntimeError, match="not ready"):
            ready_sync(sync_seneca)

    @pytest.mark.asyncio
    async def test_inside_loop_rejected(self, sync_seneca):
        """Test inside loop rejected."""
        with pytest.raises(EventLoopError, match="act_sync"):
            act_sync(sync_seneca, {"cmd": "ping"})
