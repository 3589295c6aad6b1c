"""Node handle - the console's end of the node command channel.

The handle is the only state shared between the console task and the node
task. The console only submits on it; the node only receives from it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from accord.core.errors import NodeChannelClosed
from accord.node.protocols import Command, CommandType, ReplySlot

logger = logging.getLogger(__name__)


@dataclass
class NodeHandle:
    """Command channel to a running node.

    Example:
        >>> handle = await LoopbackNode(address, store).start()
        >>> user = await handle.request(CommandType.GET_USER, id=user_id)
        >>> await handle.submit(Command(CommandType.SHUTDOWN))
    """

    address: str
    _queue: asyncio.Queue[Command] = field(default_factory=asyncio.Queue, repr=False)
    _closed: bool = field(default=False, repr=False)

    @property
    def closed(self) -> bool:
        """True once the node side has closed the channel."""
        return self._closed

    async def submit(self, command: Command) -> None:
        """Submit a command.

        Raises:
            NodeChannelClosed: Immediately, if the node has exited.
        """
        if self._closed:
            raise NodeChannelClosed()
        await self._queue.put(command)

    async def request(self, command_type: CommandType, **params: Any) -> Any:
        """Submit a command with a fresh reply slot and await its single reply.

        There is no timeout: if the node never replies this waits forever.

        Raises:
            NodeChannelClosed: If the channel is closed.
            ReplyDropped: If the node released the slot without replying.
            NodeError: If the node replied with an error.
        """
        slot: ReplySlot[Any] = ReplySlot()
        await self.submit(Command(type=command_type, params=params, reply=slot))
        return await slot.wait()

    async def receive(self) -> Command:
        """Take the next command (node side)."""
        return await self._queue.get()

    def close(self) -> None:
        """Close the channel (node side).

        Commands still queued are never served; their reply slots are
        abandoned so their waiters fail instead of hanging.
        """
        if self._closed:
            return
        self._closed = True
        dropped = 0
        while True:
            try:
                command = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if command.reply is not None:
                command.reply.abandon()
            dropped += 1
        if dropped:
            logger.debug("Dropped %d queued command(s) on close", dropped)
