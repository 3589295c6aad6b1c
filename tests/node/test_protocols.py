"""Tests for the reply slot and command types."""

from __future__ import annotations

import asyncio

import pytest

from accord.core.errors import NodeError, ReplyDropped
from accord.node.protocols import Command, CommandType, ReplySlot


class TestReplySlot:
    """Tests for ReplySlot."""

    @pytest.mark.asyncio
    async def test_send_then_wait(self):
        slot: ReplySlot[str] = ReplySlot()
        assert slot.send("abc") is True
        assert slot.closed
        assert await slot.wait() == "abc"

    @pytest.mark.asyncio
    async def test_wait_then_send(self):
        slot: ReplySlot[int] = ReplySlot()
        waiter = asyncio.create_task(slot.wait())
        await asyncio.sleep(0)
        slot.send(42)
        assert await waiter == 42

    @pytest.mark.asyncio
    async def test_fail_raises_in_waiter(self):
        slot: ReplySlot[str] = ReplySlot()
        slot.fail(NodeError("no such user"))
        with pytest.raises(NodeError, match="no such user"):
            await slot.wait()

    @pytest.mark.asyncio
    async def test_abandon_raises_reply_dropped(self):
        slot: ReplySlot[str] = ReplySlot()
        assert slot.abandon() is True
        with pytest.raises(ReplyDropped):
            await slot.wait()

    @pytest.mark.asyncio
    async def test_single_write(self):
        """Only the first write is delivered."""
        slot: ReplySlot[str] = ReplySlot()
        assert slot.send("first") is True
        assert slot.send("second") is False
        assert slot.fail(NodeError("late")) is False
        assert await slot.wait() == "first"

    @pytest.mark.asyncio
    async def test_single_wait(self):
        slot: ReplySlot[str] = ReplySlot()
        slot.send("x")
        await slot.wait()
        with pytest.raises(RuntimeError):
            await slot.wait()

    @pytest.mark.asyncio
    async def test_send_after_waiter_cancelled(self):
        """The writer learns that nobody is listening any more."""
        slot: ReplySlot[str] = ReplySlot()
        waiter = asyncio.create_task(slot.wait())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert slot.send("too late") is False


class TestCommand:
    """Tests for Command."""

    def test_shutdown_has_no_reply(self):
        command = Command(type=CommandType.SHUTDOWN)
        assert command.reply is None
        assert command.params == {}

    def test_is_immutable(self):
        command = Command(type=CommandType.GET_USERS)
        with pytest.raises(AttributeError):
            command.type = CommandType.SHUTDOWN  # type: ignore[misc]
