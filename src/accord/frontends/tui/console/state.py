"""Session state for the Accord console.

One SessionState is created at startup and lives for the whole process.
It is owned by the event loop and lent to the dispatcher for the duration
of one command; rendering only reads it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from accord.core.config import DEFAULT_PORT
from accord.core.types import STOPPED, Connection, NodeStatus, User

if TYPE_CHECKING:
    from accord.node.handle import NodeHandle

WELCOME_TITLE = "Accord"
WELCOME_LINES = [
    "Welcome to Accord!",
    "Starting the P2P node…",
    "Type /help to see all available commands.",
]


@dataclass
class SessionState:
    """Mutable record of one console session.

    The displayed view (content_*) is replaced wholesale by set_content().
    content_scroll may exceed the valid range; rendering clamps it.

    node_handle and node_status change together, only through set_running()
    and clear_node(): the handle is present iff the status is Running.
    """

    # Current view
    content_lines: list[str] = field(default_factory=lambda: list(WELCOME_LINES))
    content_title: str = WELCOME_TITLE
    content_scroll: int = 0

    # Prompt
    prompt_input: str = ""
    prompt_history: list[str] = field(default_factory=list)
    prompt_history_index: int | None = None  # None = live edit buffer
    prompt_draft: str = ""  # live buffer saved while browsing history

    # Node
    node_handle: NodeHandle | None = None
    node_status: NodeStatus = STOPPED
    listen_port: int = DEFAULT_PORT

    # Read caches, replaced by refreshing commands
    peers: list[str] = field(default_factory=list)
    users: list[User] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    # Append-only logs
    events: list[str] = field(default_factory=lambda: list(WELCOME_LINES))
    output: list[str] = field(default_factory=list)

    should_quit: bool = False

    def set_content(self, title: str, lines: list[str]) -> None:
        """Replace the current view and scroll to its top."""
        self.content_title = title
        self.content_lines = list(lines)
        self.content_scroll = 0

    def push_event(self, line: str) -> None:
        self.events.append(line)

    def push_output(self, line: str) -> None:
        self.output.append(line)

    def set_running(self, handle: NodeHandle) -> None:
        """Record a started node."""
        self.node_handle = handle
        self.node_status = NodeStatus(address=handle.address)

    def clear_node(self) -> NodeHandle | None:
        """Forget the node handle and mark the node stopped.

        Returns:
            The handle that was held, if any.
        """
        handle = self.node_handle
        self.node_handle = None
        self.node_status = STOPPED
        return handle

    @property
    def node_running(self) -> bool:
        return self.node_handle is not None

    def local_user(self) -> User | None:
        """The cached local user, if the cache holds one."""
        for user in self.users:
            if user.is_local():
                return user
        return None
