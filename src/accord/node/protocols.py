"""Node gateway protocol - command vocabulary and reply slots.

Every node-backed operation is a two-step exchange:

1. Build a Command carrying a fresh single-use ReplySlot and submit it on
   the node's command channel.
2. Await exactly one value from that slot.

The exchange has no timeout. A node that never replies stalls the waiter;
a node that exits closes the channel, which fails submission immediately.

Reply types per command:
    SHUTDOWN           -> no reply
    CREATE_USER        -> User              (params: meta)
    GET_USER           -> User              (params: id)
    GET_USERS          -> list[User]
    CREATE_CONNECTION  -> Connection        (params: to_id)
    ACCEPT_CONNECTION  -> Connection        (params: from_id, their_public_key)
    STORE_MESSAGE      -> str content hash  (params: data)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from accord.core.errors import ReplyDropped

T = TypeVar("T")


class CommandType(Enum):
    """Types of commands accepted by the node."""

    # Lifecycle
    SHUTDOWN = auto()

    # Users
    CREATE_USER = auto()
    GET_USER = auto()
    GET_USERS = auto()

    # Connections
    CREATE_CONNECTION = auto()
    ACCEPT_CONNECTION = auto()

    # Messages
    STORE_MESSAGE = auto()


class ReplySlot(Generic[T]):
    """Single-use channel delivering exactly one result to exactly one waiter.

    The writer calls send(), fail() or abandon() once; later writes are
    refused. Writes after the waiter has gone (cancelled) are refused too,
    which the writer learns from the False return value.

    Example:
        >>> slot: ReplySlot[str] = ReplySlot()
        >>> slot.send("abc")
        True
        >>> await slot.wait()
        'abc'
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._waited = False

    @property
    def closed(self) -> bool:
        """True once a value was written or the waiter is gone."""
        return self._future.done()

    def send(self, value: T) -> bool:
        """Deliver a successful result.

        Returns:
            False if the slot was already written or the waiter is gone.
        """
        if self._future.done():
            return False
        self._future.set_result(value)
        return True

    def fail(self, error: BaseException) -> bool:
        """Deliver an error result.

        Returns:
            False if the slot was already written or the waiter is gone.
        """
        if self._future.done():
            return False
        self._future.set_exception(error)
        return True

    def abandon(self) -> bool:
        """Release the slot without a result; the waiter gets ReplyDropped."""
        return self.fail(ReplyDropped())

    async def wait(self) -> T:
        """Wait for the single result.

        Raises:
            ReplyDropped: If the writer abandoned the slot.
            RuntimeError: If the slot was already waited on.
            Exception: The error delivered with fail().
        """
        if self._waited:
            raise RuntimeError("ReplySlot can only be waited on once")
        self._waited = True
        return await self._future


@dataclass(frozen=True)
class Command:
    """Command submitted to the node.

    Attributes:
        type: The command type.
        params: Command parameters.
        reply: Slot for the node's answer; None only for SHUTDOWN.
    """

    type: CommandType
    params: dict[str, Any] = field(default_factory=dict)
    reply: ReplySlot[Any] | None = None
