"""Text builders for console views.

Views are plain lists of lines; these helpers keep their formatting in one
place so commands only decide *what* to show.
"""

from __future__ import annotations

import json
from typing import Any

from accord.core.types import Connection, User

HELP_LINES = [
    "Available commands:",
    "  /startNode                                   Start the P2P node",
    "  /stopNode                                    Stop the P2P node",
    "  /restartNode                                 Restart the P2P node",
    "  /port <port>                                 Change listen port and restart node",
    "  /sync                                        Note: sync is automatic",
    "  /peers                                       Show all known peers in content",
    "  /user                                        Show local user (or create one) in content",
    "  /nick <new_name>                             Change your display name",
    "  /users                                       Show all known users in content",
    "  /user <nick>                                 Show a user by display name in content",
    "  /connection <nick>                           Initiate a connection with a user",
    "  /connections                                 View all connections in content",
    "  /connectionsPending                          View pending connections in content",
    "  /acceptConnection <from_id> <their_pubkey>   Accept an incoming connection",
    "  /declineConnection <connection_id>           Decline a connection (local only)",
    "  /message <nick> <body>                       Send a text message",
    "  /messagePlugin <nick> <type> <body>          Send a plugin message",
    "  /messages                                    Show all messages in content",
    "  /events                                      Show all node events in content",
    "  /console                                     Show all output in content",
    "  /help                                        Show all commands in content",
    "  /quit                                        Quit the console",
    "",
    "Note: /users lists on-disk records without LOCAL/REMOTE labels while the node is stopped.",
    "",
    "Navigation:  PgUp/PgDn scroll content  |  ↑↓ prompt history  |  Esc quit",
]

NODE_NOT_RUNNING = "Node is not running. Use /startNode first."


def listen_addr(port: int) -> str:
    """Listen address for the node on all interfaces."""
    return f"/ip4/0.0.0.0/tcp/{port}"


def truncate_id(value: str, max_len: int) -> str:
    """Shorten an identifier to max_len characters, marking the cut with '…'."""
    if len(value) <= max_len:
        return value
    return f"{value[:max_len]}…"


def compact_json(value: Any) -> str:
    """Render structured data the way it is shown in views: compact JSON."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def connection_state(connection: Connection) -> str:
    return "established" if connection.is_established() else "pending"


def user_lines(user: User) -> list[str]:
    role = "LOCAL" if user.is_local() else "REMOTE"
    return [
        f"[{role}]  {user.display_name}",
        f"  id         : {user.id}",
        f"  public_key : {user.public_key}",
    ]


def user_list_lines(users: list[User]) -> list[str]:
    """Node-backed user listing with LOCAL/REMOTE labels."""
    lines = [f"Known users  ({len(users)})", ""]
    if not users:
        lines.append("  No remote users discovered yet.")
    for user in users:
        label = "LOCAL " if user.is_local() else "REMOTE"
        lines.append(f"  [{label}]  {user.display_name}  —  {truncate_id(user.id, 24)}")
    return lines


def connection_lines(connections: list[Connection]) -> list[str]:
    lines = [f"Connections  ({len(connections)})", ""]
    if not connections:
        lines.append("  No connections on record.")
    for c in connections:
        state = connection_state(c).ljust(11)
        lines.append(
            f"  [{state}]  {truncate_id(c.from_id, 16)} → {truncate_id(c.to_id, 16)}"
        )
    return lines


def pending_connection_lines(pending: list[Connection]) -> list[str]:
    lines = [f"Pending connections  ({len(pending)})", ""]
    if not pending:
        lines.append("  No pending connections.")
    for c in pending:
        lines.append(f"  {truncate_id(c.from_id, 16)} → {truncate_id(c.to_id, 16)}")
        if c.public_key:
            lines.append(f"    our_public_key: {c.public_key}")
    return lines


def peer_lines(peers: list[str]) -> list[str]:
    lines = [f"Known peers  ({len(peers)})", ""]
    if not peers:
        lines.append("  No peers discovered yet. Start the node and wait for mDNS/Kademlia.")
    for i, peer in enumerate(peers, start=1):
        lines.append(f"  {i:>3}.  {peer}")
    return lines


def message_lines(messages: list[str]) -> list[str]:
    lines = [f"Messages  ({len(messages)})", ""]
    if not messages:
        lines.append("  No messages yet. Use /message <nick> <body> to send one.")
    lines.extend(messages)
    return lines
