"""Command handlers and dispatch for the Accord console.

Provides a registry-based dispatch system for slash commands. Each handler
is a separate async function receiving the dispatcher (for collaborators),
the session state (lent exclusively for the duration of the command) and the
argument string after the command name.

Failure containment:
- Parse and precondition failures render a view and log an event.
- NodeError / NodeStartError / StorageError render an error view; caches
  keep their previous contents.
- NodeChannelClosed and ReplyDropped propagate to the caller, after the
  node handle has been cleared for a closed channel.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from accord.core.config import parse_port
from accord.core.errors import AccordError, NodeChannelClosed, NodeError, NotFoundError, StorageError
from accord.core.storage import Store
from accord.core.types import Connection, Message, User, UserMeta
from accord.frontends.tui.console import views
from accord.frontends.tui.console.state import SessionState
from accord.node.engine import NodeFactory
from accord.node.handle import NodeHandle
from accord.node.protocols import Command, CommandType

logger = logging.getLogger(__name__)

# Type alias for command handlers
CommandHandler = Callable[["CommandDispatcher", SessionState, str], Awaitable[None]]


@dataclass
class CommandDispatcher:
    """Interprets command lines against the session state.

    Example:
        >>> dispatcher = CommandDispatcher(store=store, start_node=start_loopback_node(store))
        >>> await dispatcher.execute(state, "/startNode")
        >>> state.node_status.running
        True
    """

    store: Store
    start_node: NodeFactory
    restart_delay: float = 0.2

    async def execute(self, state: SessionState, raw: str) -> bool:
        """Parse and run one command line.

        Args:
            state: Session state, mutated in place.
            raw: The line as typed.

        Returns:
            True if a command was handled, False for empty or unknown input.

        Raises:
            NodeChannelClosed: If the node's channel closed during submission.
            ReplyDropped: If the node released a reply without answering.
        """
        text = raw.strip()
        if not text:
            return False

        name, args = split_command(text)
        handler = COMMANDS.get(name)
        if handler is None:
            state.push_event(f"[CMD] Unknown: {name}")
            state.set_content("Error", [f"Unknown command: {name}. Type /help for a list."])
            return False

        logger.debug("Dispatching %s", name)
        await handler(self, state, args)
        return True


def split_command(text: str) -> tuple[str, str]:
    """Split a line at the first space into (name, rest)."""
    name, _, rest = text.partition(" ")
    return name, rest.lstrip()


def resolve_nick(store: Store, nick: str) -> str | None:
    """Resolve a display name to a user id.

    Case-insensitive exact match against the local user first, then every
    known user. Unreadable records are skipped.
    """
    wanted = nick.casefold()
    try:
        local = store.load_local_user()
    except StorageError:
        local = None
    if local is not None and local.meta.display_name and local.meta.display_name.casefold() == wanted:
        return local.id

    try:
        user_ids = store.list_known_users()
    except StorageError as e:
        logger.warning("Cannot list known users: %s", e)
        return None
    for user_id in user_ids:
        try:
            meta = store.load_known_user(user_id).meta
        except StorageError:
            continue
        if meta.display_name and meta.display_name.casefold() == wanted:
            return user_id
    return None


def _require_node(state: SessionState, title: str) -> NodeHandle | None:
    """Return the node handle, or render the uniform not-running view."""
    if state.node_handle is None:
        state.set_content(title, [views.NODE_NOT_RUNNING])
        return None
    return state.node_handle


async def _request(state: SessionState, handle: NodeHandle, command_type: CommandType, **params: Any) -> Any:
    """Run one request/reply exchange, clearing the handle if the channel closed."""
    try:
        return await handle.request(command_type, **params)
    except NodeChannelClosed:
        if state.node_handle is handle:
            state.clear_node()
            state.push_event("[NODE] Channel closed — node marked as stopped.")
        raise


def _load_connections(store: Store) -> list[Connection]:
    """Rebuild connections from the store, skipping records that fail to load.

    Raises:
        StorageError: If the connection listing itself cannot be read.
    """
    try:
        from_id = store.load_local_user().id
    except StorageError:
        from_id = ""

    connections: list[Connection] = []
    for to_id in store.list_connections():
        try:
            connections.append(store.load_connection(from_id, to_id))
        except StorageError:
            continue
    return connections


# =============================================================================
# Views of logs and caches
# =============================================================================


async def cmd_help(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /help - static command reference."""
    state.push_event("[CMD] /help")
    state.set_content("Help", views.HELP_LINES)


async def cmd_quit(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /quit - end the session after this command."""
    state.push_event("[APP] Quit requested.")
    state.should_quit = True


async def cmd_events(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /events - full event log, scrolled to the bottom."""
    marker = "[CMD] /events — showing events."
    state.push_event(marker)
    state.set_content("Events", state.events)
    state.content_scroll = len(state.content_lines)


async def cmd_console(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /console - command output log, scrolled to the bottom."""
    state.push_output("[CMD] /console — showing output log.")
    state.set_content("Console", state.output)
    state.content_scroll = len(state.content_lines)


async def cmd_messages(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /messages - message cache, scrolled to the bottom."""
    marker = "[CMD] /messages — showing messages."
    state.push_event(marker)
    state.set_content("Messages", [*views.message_lines(state.messages), "", marker])
    state.content_scroll = len(state.content_lines)


# =============================================================================
# Node lifecycle
# =============================================================================


async def cmd_start_node(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /startNode - start the node on the configured port."""
    if state.node_handle is not None:
        state.set_content("Node", ["Node is already running."])
        return

    address = views.listen_addr(state.listen_port)
    msg = f"Starting node on {address} …"
    state.push_event(f"[NODE] {msg}")
    state.push_output(msg)

    try:
        handle = await dispatcher.start_node(address)
    except (AccordError, OSError) as e:
        logger.warning("Node start failed on %s: %s", address, e)
        err = f"Failed to start node: {e}"
        state.push_event(f"[NODE] Start failed: {e}")
        state.push_output(err)
        state.set_content("Node", [err])
        return

    state.set_running(handle)
    ok = f"Node started on {address}."
    state.push_event(f"[NODE] {ok}")
    state.push_output(ok)
    state.set_content("Node", [ok])


async def cmd_stop_node(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /stopNode - ask the node to shut down and forget its handle."""
    handle = state.clear_node()
    if handle is None:
        state.set_content("Node", ["Node is not running."])
        return

    try:
        await handle.submit(Command(type=CommandType.SHUTDOWN))
    except NodeChannelClosed:
        logger.debug("Node channel already closed on stop")

    state.push_event("[NODE] Stopped.")
    state.push_output("Node stopped.")
    state.set_content("Node", ["Node stopped."])


async def cmd_restart_node(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /restartNode - stop, pause for the port to be released, start."""
    state.push_event("[NODE] Restarting…")
    await cmd_stop_node(dispatcher, state, "")
    await asyncio.sleep(dispatcher.restart_delay)
    await cmd_start_node(dispatcher, state, "")


async def cmd_port(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /port - show or change the listen port (restarts the node)."""
    arg = args.strip()
    if not arg:
        state.set_content("Port", [f"Current port: {state.listen_port}  |  Usage: /port <port>"])
        return

    try:
        new_port = parse_port(arg)
    except ValueError as e:
        state.push_event(f"[CMD] /port rejected: {e}")
        state.set_content("Port", [str(e)])
        return

    old_port = state.listen_port
    state.listen_port = new_port
    state.push_event(f"[NODE] Port changed: {old_port} → {new_port}")
    state.push_output(f"Port changed to {new_port}. Restarting node…")
    await cmd_restart_node(dispatcher, state, "")


async def cmd_sync(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /sync - informational; sync runs continuously inside the node."""
    if state.node_handle is None:
        state.set_content("Sync", [views.NODE_NOT_RUNNING])
        return
    msg = "Sync is continuous — the node syncs automatically with peers via gossipsub."
    state.push_event("[SYNC] Manual sync requested.")
    state.push_output(msg)
    state.set_content("Sync", [msg])


# =============================================================================
# Peers and users
# =============================================================================


async def cmd_peers(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /peers - refresh the peer cache from the store."""
    try:
        peers = dispatcher.store.load_peers()
    except NotFoundError:
        peers = []
    except StorageError as e:
        logger.warning("Peer refresh failed: %s", e)
        state.push_event(f"[PEERS] Refresh failed: {e}")
        state.set_content("Peers", [f"Error loading peers: {e}"])
        return

    state.peers = peers
    state.push_event(f"[PEERS] Refreshed ({len(peers)} known).")
    state.push_output(f"Peers: {len(peers)} known.")
    state.set_content("Peers", views.peer_lines(peers))


async def cmd_nick(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /nick - rename the local user in the store and the cache."""
    new_name = args.strip()
    if not new_name:
        state.set_content("Nick", ["Usage: /nick <new_name>"])
        return

    try:
        user = dispatcher.store.load_local_user()
    except StorageError:
        state.set_content("Nick", ["No local user found. Use /user to create one first."])
        return

    old_name = user.display_name
    user.meta.display_name = new_name
    try:
        dispatcher.store.save_local_user(user)
    except StorageError as e:
        logger.warning("Saving local user failed: %s", e)
        state.push_event(f"[NICK] Save failed: {e}")
        state.set_content("Nick", [f"Error saving display name: {e}"])
        return

    cached = state.local_user()
    if cached is not None:
        cached.meta.display_name = new_name

    msg = f"Display name changed: {old_name} → {new_name}"
    state.push_event(f"[NICK] {old_name} → {new_name}")
    state.push_output(msg)
    state.set_content("Nick", [msg])


async def cmd_user(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /user - show the local user, a user by nick, or create one.

    Usage:
        /user          # Show local user, creating it if absent
        /user alice    # Show 'alice' if known, else create a user named 'alice'
    """
    arg = args.strip()

    if arg:
        user_id = resolve_nick(dispatcher.store, arg)
        if user_id is not None:
            await _show_user_by_id(state, user_id)
            return
        # Unknown nick: treated as the display name of a new user

    handle = _require_node(state, "User")
    if handle is None:
        return

    if not arg:
        try:
            user = dispatcher.store.load_local_user()
        except NotFoundError:
            state.push_output("No local user found — creating one…")
        except StorageError as e:
            state.set_content("User", [f"Error loading local user: {e}"])
            return
        else:
            state.set_content("User", views.user_lines(user))
            return

    meta = UserMeta(display_name=arg or None)
    try:
        user = await _request(state, handle, CommandType.CREATE_USER, meta=meta)
    except NodeError as e:
        logger.warning("User creation failed: %s", e)
        state.push_event(f"[USER] Create failed: {e}")
        state.set_content("User", [f"Error creating user: {e}"])
        return

    state.push_event(f"[USER] Created: {user.display_name} ({views.truncate_id(user.id, 16)})")
    state.push_output(f"User created: {user.display_name}")
    if not any(u.id == user.id for u in state.users):
        state.users.append(user)
    state.set_content("User", views.user_lines(user))


async def _show_user_by_id(state: SessionState, user_id: str) -> None:
    handle = _require_node(state, "User")
    if handle is None:
        return

    try:
        user = await _request(state, handle, CommandType.GET_USER, id=user_id)
    except NodeError as e:
        state.set_content("User", [f"User not found: {e}"])
        return
    state.set_content("User", views.user_lines(user))


async def cmd_users(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /users - list users from the node, or from the store when stopped.

    The store fallback is read-only and carries no LOCAL/REMOTE labels.
    """
    handle = state.node_handle
    if handle is None:
        _show_users_from_store(dispatcher.store, state)
        return

    try:
        users: list[User] = await _request(state, handle, CommandType.GET_USERS)
    except NodeError as e:
        logger.warning("User refresh failed: %s", e)
        state.push_event(f"[USERS] Fetch failed: {e}")
        state.set_content("Users", [f"Error fetching users: {e}"])
        return

    state.users = list(users)
    state.push_event(f"[USERS] Refreshed ({len(users)} found).")
    state.push_output(f"Users: {len(users)} found.")
    state.set_content("Users", views.user_list_lines(users))


def _show_users_from_store(store: Store, state: SessionState) -> None:
    try:
        user_ids = store.list_known_users()
    except StorageError as e:
        state.set_content("Users", [f"Error listing users: {e}"])
        return

    lines = [f"Known users  ({len(user_ids)})", ""]
    if not user_ids:
        lines.append("  No remote users on record.")
    for user_id in user_ids:
        try:
            name = store.load_known_user(user_id).display_name
        except StorageError:
            name = "(unnamed)"
        lines.append(f"  {name}  {user_id}")
    state.set_content("Users", lines)


# =============================================================================
# Connections
# =============================================================================


async def cmd_connection(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /connection - initiate a connection with a user by nick."""
    nick = args.strip()
    if not nick:
        state.set_content("Connection", ["Usage: /connection <nick>"])
        return

    to_id = resolve_nick(dispatcher.store, nick)
    if to_id is None:
        state.set_content(
            "Connection", [f"No user found with nick '{nick}'. Use /users to see known users."]
        )
        return

    handle = _require_node(state, "Connection")
    if handle is None:
        return

    try:
        conn: Connection = await _request(state, handle, CommandType.CREATE_CONNECTION, to_id=to_id)
    except NodeError as e:
        logger.warning("Connection to %s failed: %s", to_id, e)
        state.push_event(f"[CONN] Create failed: {e}")
        state.set_content("Connection", [f"Error creating connection: {e}"])
        return

    conn_state = views.connection_state(conn)
    state.push_event(f"[CONN] → {views.truncate_id(conn.to_id, 16)} [{conn_state}]")
    state.push_output(f"Connection initiated with {nick} [{conn_state}].")
    if not any(c.to_id == conn.to_id for c in state.connections):
        state.connections.append(conn)
    state.set_content(
        "Connection",
        [
            f"Connection initiated  [{conn_state}]",
            "",
            f"  from  : {conn.from_id}",
            f"  to    : {conn.to_id}",
            f"  state : {conn_state}",
        ],
    )


async def cmd_connections(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /connections - rebuild the connection cache from the store."""
    try:
        connections = _load_connections(dispatcher.store)
    except StorageError as e:
        logger.warning("Connection refresh failed: %s", e)
        state.push_event(f"[CONN] Refresh failed: {e}")
        state.set_content("Connections", [f"Error loading connections: {e}"])
        return

    state.connections = connections
    state.push_event(f"[CONN] Refreshed ({len(connections)} on record).")
    state.push_output(f"Connections: {len(connections)}.")
    state.set_content("Connections", views.connection_lines(connections))


async def cmd_connections_pending(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /connectionsPending - read-only view of unestablished connections."""
    try:
        connections = _load_connections(dispatcher.store)
    except StorageError as e:
        state.set_content("Connections (Pending)", [f"Error loading connections: {e}"])
        return

    pending = [c for c in connections if not c.is_established()]
    state.set_content("Connections (Pending)", views.pending_connection_lines(pending))


async def cmd_accept_connection(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /acceptConnection - accept an incoming connection.

    Usage:
        /acceptConnection <from_id> <their_public_key>
    """
    from_id, _, their_public_key = args.strip().partition(" ")
    their_public_key = their_public_key.strip()
    if not from_id or not their_public_key:
        state.set_content(
            "Accept Connection", ["Usage: /acceptConnection <from_id> <their_public_key>"]
        )
        return

    handle = _require_node(state, "Accept Connection")
    if handle is None:
        return

    try:
        conn: Connection = await _request(
            state,
            handle,
            CommandType.ACCEPT_CONNECTION,
            from_id=from_id,
            their_public_key=their_public_key,
        )
    except NodeError as e:
        logger.warning("Accepting connection from %s failed: %s", from_id, e)
        state.push_event(f"[CONN] Accept failed: {e}")
        state.set_content("Accept Connection", [f"Error accepting connection: {e}"])
        return

    state.push_event(
        f"[CONN] Accepted from {views.truncate_id(conn.from_id, 16)} — DH key established."
    )
    state.push_output(f"Connection with {conn.from_id} accepted.")
    for i, cached in enumerate(state.connections):
        if cached.from_id == conn.from_id:
            state.connections[i] = conn
            break
    else:
        state.connections.append(conn)
    state.set_content(
        "Accept Connection",
        [
            "Connection accepted  [established]",
            "",
            f"  from  : {conn.from_id}",
            f"  to    : {conn.to_id}",
        ],
    )


async def cmd_decline_connection(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /declineConnection - drop a connection from the local cache only.

    Nothing is sent to the node; the peer is not told.
    """
    user_id = args.strip()
    if not user_id:
        state.set_content("Decline Connection", ["Usage: /declineConnection <connection_id>"])
        return

    state.connections = [c for c in state.connections if user_id not in (c.from_id, c.to_id)]
    state.push_event(f"[CONN] Declined connection with {views.truncate_id(user_id, 16)}.")
    state.set_content(
        "Decline Connection",
        [
            f"Connection with {user_id} removed locally.",
            "(Network-level decline is not propagated to the node.)",
        ],
    )


# =============================================================================
# Messages
# =============================================================================


async def cmd_message(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /message - send a text message to a user by nick."""
    nick, _, body = args.strip().partition(" ")
    body = body.strip()
    if not nick or not body:
        state.set_content("Message", ["Usage: /message <nick> <body>"])
        return
    await _send_message(dispatcher, state, nick, "text", {"text": body})


async def cmd_message_plugin(dispatcher: CommandDispatcher, state: SessionState, args: str) -> None:
    """Handle /messagePlugin - send a typed message with a structured body.

    The body is parsed as JSON; anything else is sent as {"raw": body}.
    """
    parts = args.strip().split(" ", 2)
    if len(parts) < 3 or not all(p.strip() for p in parts):
        state.set_content("Message", ["Usage: /messagePlugin <nick> <plugin_type> <plugin_body>"])
        return
    nick, plugin_type, raw_body = (p.strip() for p in parts)

    try:
        plugin_body = json.loads(raw_body)
    except ValueError:
        plugin_body = {"raw": raw_body}
    await _send_message(dispatcher, state, nick, plugin_type, plugin_body)


async def _send_message(
    dispatcher: CommandDispatcher,
    state: SessionState,
    nick: str,
    plugin_type: str,
    plugin_body: Any,
) -> None:
    """Resolve the recipient, build the envelope and store it via the node."""
    to_id = resolve_nick(dispatcher.store, nick)
    if to_id is None:
        state.set_content(
            "Message", [f"No user found with nick '{nick}'. Use /users to see known users."]
        )
        return

    handle = _require_node(state, "Message")
    if handle is None:
        return

    try:
        local_user = dispatcher.store.load_local_user()
    except StorageError:
        state.push_event("[MSG] Send failed: no local user.")
        state.set_content("Message", ["No local user — run /user first."])
        return

    message = Message(
        from_id=local_user.id,
        to_id=to_id,
        plugin_type=plugin_type,
        plugin_body=plugin_body,
    )
    try:
        content_hash: str = await _request(
            state, handle, CommandType.STORE_MESSAGE, data=message.to_bytes()
        )
    except NodeError as e:
        logger.warning("Storing message for %s failed: %s", to_id, e)
        state.push_event(f"[MSG] Send failed: {e}")
        state.set_content("Message", [f"Error storing message: {e}"])
        return

    body_text = views.compact_json(plugin_body)
    state.messages.append(
        f"[{views.truncate_id(local_user.id, 8)}→{views.truncate_id(to_id, 8)}]"
        f"  [{plugin_type}]  {body_text}"
    )
    state.push_event(f"[MSG] → {nick} [{plugin_type}] (hash: {views.truncate_id(content_hash, 12)})")
    state.push_output(f"Message sent to {nick} (hash: {content_hash}).")
    state.set_content(
        "Message",
        [
            f"Message sent  [{plugin_type}]",
            "",
            f"  to   : {nick} ({views.truncate_id(to_id, 16)})",
            f"  body : {body_text}",
            f"  hash : {content_hash}",
        ],
    )


# Command registry - maps command names to handlers (names are case-sensitive)
COMMANDS: dict[str, CommandHandler] = {
    "/help": cmd_help,
    "/quit": cmd_quit,
    "/events": cmd_events,
    "/console": cmd_console,
    "/messages": cmd_messages,
    "/startNode": cmd_start_node,
    "/stopNode": cmd_stop_node,
    "/restartNode": cmd_restart_node,
    "/port": cmd_port,
    "/sync": cmd_sync,
    "/peers": cmd_peers,
    "/nick": cmd_nick,
    "/user": cmd_user,
    "/users": cmd_users,
    "/connection": cmd_connection,
    "/connections": cmd_connections,
    "/connectionsPending": cmd_connections_pending,
    "/acceptConnection": cmd_accept_connection,
    "/declineConnection": cmd_decline_connection,
    "/message": cmd_message,
    "/messagePlugin": cmd_message_plugin,
}
