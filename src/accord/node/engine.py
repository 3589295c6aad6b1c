"""LoopbackNode - in-process node serving the gateway protocol.

LoopbackNode stands in for the networked node when none is wired in:
- Reserves the listen port so address conflicts surface on start
- Serves user, connection and message commands from the local store
- Replies to handler failures with NodeError and keeps serving

It does not speak any peer protocol; accepted TCP connections are closed.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from accord.core.errors import NodeError, NodeStartError, NotFoundError
from accord.core.storage import Store
from accord.core.types import Connection, User, UserMeta
from accord.node.handle import NodeHandle
from accord.node.protocols import Command, CommandType

logger = logging.getLogger(__name__)

# /ip4/<host>/tcp/<port>
_ADDRESS_RE = re.compile(r"^/ip4/(?P<host>\d{1,3}(?:\.\d{1,3}){3})/tcp/(?P<port>\d{1,5})$")

# Factory the console uses to start a node on a listen address
NodeFactory = Callable[[str], Awaitable[NodeHandle]]


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split a /ip4/<host>/tcp/<port> listen address.

    Raises:
        NodeStartError: If the address is malformed.
    """
    match = _ADDRESS_RE.match(address.strip())
    if match is None:
        raise NodeStartError(f"Invalid listen address: {address}")
    host = match.group("host")
    port = int(match.group("port"))
    if any(int(octet) > 255 for octet in host.split(".")) or port > 65535:
        raise NodeStartError(f"Invalid listen address: {address}")
    return host, port


def _new_id() -> str:
    return secrets.token_hex(16)


def _new_key() -> str:
    return secrets.token_hex(32)


@dataclass
class LoopbackNode:
    """In-process node backed by the persistence store.

    Example:
        >>> node = LoopbackNode("/ip4/127.0.0.1/tcp/51030", store)
        >>> handle = await node.start()
        >>> users = await handle.request(CommandType.GET_USERS)
    """

    address: str
    store: Store
    listen: bool = True
    _messages: dict[str, bytes] = field(default_factory=dict, repr=False)
    _server: asyncio.AbstractServer | None = field(default=None, init=False, repr=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    async def start(self) -> NodeHandle:
        """Bind the listen address and start serving commands.

        Raises:
            NodeStartError: If the address is invalid or cannot be bound.
        """
        host, port = parse_listen_address(self.address)
        if self.listen:
            try:
                self._server = await asyncio.start_server(self._on_connection, host, port)
            except OSError as e:
                raise NodeStartError(f"Cannot listen on {self.address}: {e}") from e

        handle = NodeHandle(address=self.address)
        self._task = asyncio.create_task(self._serve(handle))
        logger.info("Loopback node started on %s", self.address)
        return handle

    @property
    def task(self) -> asyncio.Task[None] | None:
        """The serving task, once started."""
        return self._task

    async def _on_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.close()

    async def _serve(self, handle: NodeHandle) -> None:
        handlers: dict[CommandType, Callable[[dict[str, Any]], Any]] = {
            CommandType.CREATE_USER: self._create_user,
            CommandType.GET_USER: self._get_user,
            CommandType.GET_USERS: self._get_users,
            CommandType.CREATE_CONNECTION: self._create_connection,
            CommandType.ACCEPT_CONNECTION: self._accept_connection,
            CommandType.STORE_MESSAGE: self._store_message,
        }
        try:
            while True:
                command = await handle.receive()
                if command.type is CommandType.SHUTDOWN:
                    logger.info("Loopback node shutting down")
                    break
                self._handle(command, handlers.get(command.type))
        finally:
            handle.close()
            if self._server is not None:
                self._server.close()
                await self._server.wait_closed()
                self._server = None

    def _handle(self, command: Command, handler: Callable[[dict[str, Any]], Any] | None) -> None:
        if command.reply is None:
            logger.warning("Dropping %s without reply slot", command.type.name)
            return
        if handler is None:
            command.reply.fail(NodeError(f"Unknown command type: {command.type}"))
            return
        try:
            result = handler(command.params)
        except NodeError as e:
            delivered = command.reply.fail(e)
        except Exception as e:
            logger.exception("Handler for %s failed", command.type.name)
            delivered = command.reply.fail(NodeError(str(e)))
        else:
            delivered = command.reply.send(result)
        if not delivered:
            logger.debug("Reply for %s not delivered: waiter gone", command.type.name)

    # =========================================================================
    # Users
    # =========================================================================

    def _local_user(self) -> User:
        try:
            return self.store.load_local_user()
        except NotFoundError:
            raise NodeError("No local user") from None

    def _create_user(self, params: dict[str, Any]) -> User:
        """Create a user; the first one becomes the local identity."""
        meta = params.get("meta") or UserMeta()
        try:
            self.store.load_local_user()
        except NotFoundError:
            user = User(id=_new_id(), public_key=_new_key(), meta=meta, local=True)
            self.store.save_local_user(user)
            return user
        user = User(id=_new_id(), public_key=_new_key(), meta=meta, local=False)
        self.store.save_known_user(user)
        return user

    def _get_user(self, params: dict[str, Any]) -> User:
        user_id = params["id"]
        try:
            local = self.store.load_local_user()
        except NotFoundError:
            local = None
        if local is not None and local.id == user_id:
            return local
        try:
            return self.store.load_known_user(user_id)
        except NotFoundError:
            raise NodeError(f"Unknown user: {user_id}") from None

    def _get_users(self, params: dict[str, Any]) -> list[User]:
        users: list[User] = []
        try:
            users.append(self.store.load_local_user())
        except NotFoundError:
            pass
        for user_id in self.store.list_known_users():
            try:
                users.append(self.store.load_known_user(user_id))
            except NotFoundError:
                continue
        return users

    # =========================================================================
    # Connections
    # =========================================================================

    def _create_connection(self, params: dict[str, Any]) -> Connection:
        to_id = params["to_id"]
        local = self._local_user()
        if to_id == local.id:
            raise NodeError("Cannot connect to yourself")
        try:
            self.store.load_known_user(to_id)
        except NotFoundError:
            raise NodeError(f"Unknown user: {to_id}") from None
        try:
            return self.store.load_connection(local.id, to_id)
        except NotFoundError:
            pass
        connection = Connection(from_id=local.id, to_id=to_id, public_key=_new_key())
        self.store.save_connection(local.id, to_id, connection)
        return connection

    def _accept_connection(self, params: dict[str, Any]) -> Connection:
        from_id = params["from_id"]
        their_public_key = params["their_public_key"]
        local = self._local_user()
        try:
            existing = self.store.load_connection(local.id, from_id)
        except NotFoundError:
            existing = None
        connection = Connection(
            from_id=from_id,
            to_id=local.id,
            public_key=existing.public_key if existing and existing.public_key else _new_key(),
            their_public_key=their_public_key,
        )
        self.store.save_connection(local.id, from_id, connection)
        return connection

    # =========================================================================
    # Messages
    # =========================================================================

    def _store_message(self, params: dict[str, Any]) -> str:
        data: bytes = params["data"]
        try:
            envelope = json.loads(data)
        except (TypeError, ValueError) as e:
            raise NodeError(f"Invalid message envelope: {e}") from e
        if not isinstance(envelope, dict) or not {"from_id", "to_id", "plugin_type"} <= envelope.keys():
            raise NodeError("Invalid message envelope: missing fields")
        content_hash = hashlib.sha256(data).hexdigest()
        self._messages[content_hash] = data
        return content_hash


def start_loopback_node(store: Store, *, listen: bool = True) -> NodeFactory:
    """Build the node factory used by the console.

    Args:
        store: Persistence collaborator shared with the console.
        listen: Whether started nodes bind their listen port.

    Returns:
        Async callable taking a listen address and returning a NodeHandle.
    """

    async def factory(address: str) -> NodeHandle:
        return await LoopbackNode(address, store, listen=listen).start()

    return factory
