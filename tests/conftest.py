"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from accord.core.storage import FileStore
from accord.core.types import User, UserMeta
from accord.node.handle import NodeHandle
from accord.node.protocols import Command, CommandType

ALICE_ID = "a1" * 16
BOB_ID = "b2" * 16


@pytest.fixture(autouse=True)
def clean_accord_env(monkeypatch):
    """Keep ACCORD_* settings from the developer's shell out of tests."""
    for key in (
        "ACCORD_PORT",
        "ACCORD_DATA_DIR",
        "ACCORD_THEME",
        "ACCORD_AUTOSTART",
        "ACCORD_LOG_LEVEL",
        "ACCORD_LOG_FILE",
        "ACCORD_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def store(tmp_path):
    """Empty file store under a temp directory."""
    return FileStore(tmp_path / "data")


@pytest.fixture
def alice():
    """Local user 'alice'."""
    return User(id=ALICE_ID, public_key="pk-alice", meta=UserMeta(display_name="alice"), local=True)


@pytest.fixture
def bob():
    """Known remote user 'bob'."""
    return User(id=BOB_ID, public_key="pk-bob", meta=UserMeta(display_name="bob"))


@pytest.fixture
def populated_store(store, alice, bob):
    """Store with alice as the local user and bob as a known user."""
    store.save_local_user(alice)
    store.save_known_user(bob)
    return store


class ScriptedNode:
    """Node factory whose replies come from a responder function.

    The responder receives each command and returns the reply value or
    raises; raised errors are delivered through the reply slot. Every
    command received is recorded in ``commands``.
    """

    def __init__(self, responder: Callable[[Command], Any] | None = None):
        self.responder = responder or (lambda command: None)
        self.commands: list[Command] = []
        self.addresses: list[str] = []
        self.handles: list[NodeHandle] = []
        self._tasks: list[asyncio.Task[None]] = []

    async def __call__(self, address: str) -> NodeHandle:
        handle = NodeHandle(address=address)
        self.addresses.append(address)
        self.handles.append(handle)
        self._tasks.append(asyncio.create_task(self._serve(handle)))
        return handle

    async def _serve(self, handle: NodeHandle) -> None:
        while True:
            command = await handle.receive()
            self.commands.append(command)
            if command.type is CommandType.SHUTDOWN:
                handle.close()
                return
            assert command.reply is not None
            try:
                result = self.responder(command)
            except Exception as e:
                command.reply.fail(e)
            else:
                command.reply.send(result)

    def types(self) -> list[CommandType]:
        return [c.type for c in self.commands]


@pytest.fixture
def scripted_node() -> Callable[..., ScriptedNode]:
    """Build a ScriptedNode from an optional responder."""

    def build(responder: Callable[[Command], Any] | None = None) -> ScriptedNode:
        return ScriptedNode(responder)

    return build
