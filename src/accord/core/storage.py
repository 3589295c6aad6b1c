"""Persistence collaborator - local user, known users, connections, peers.

The console reads and writes these records synchronously, outside of any
node interaction. FileStore keeps each record as a small JSON document under
a root directory:

    <root>/local_user.json
    <root>/users/<user_id>.json
    <root>/connections/<local_id>/<remote_id>.json
    <root>/peers.json

Missing records raise NotFoundError; unreadable or corrupt records raise
StorageError. Writes go through a temp file and rename so a reader never
observes a half-written record.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, TypeVar

from accord.core.errors import NotFoundError, StorageError
from accord.core.types import Connection, User

logger = logging.getLogger(__name__)

_Record = TypeVar("_Record", User, Connection)


class Store(Protocol):
    """Persistence boundary consumed by the console and the loopback node."""

    def load_local_user(self) -> User: ...

    def save_local_user(self, user: User) -> None: ...

    def list_known_users(self) -> list[str]: ...

    def load_known_user(self, user_id: str) -> User: ...

    def save_known_user(self, user: User) -> None: ...

    def list_connections(self) -> list[str]: ...

    def load_connection(self, local_id: str, remote_id: str) -> Connection: ...

    def save_connection(self, local_id: str, remote_id: str, connection: Connection) -> None: ...

    def load_peers(self) -> list[str]: ...

    def save_peers(self, peers: list[str]) -> None: ...


def _sanitize_name(name: str) -> str:
    """Make an identifier safe to use as a file name."""
    for char in '/\\:*?"<>|':
        name = name.replace(char, "_")
    return name or "_"


@dataclass
class FileStore:
    """JSON-on-disk implementation of Store.

    Example:
        >>> store = FileStore(Path("~/.accord"))
        >>> store.save_local_user(user)
        >>> store.load_local_user().display_name
        'alice'
    """

    root: Path

    def __post_init__(self) -> None:
        self.root = Path(self.root).expanduser()

    # =========================================================================
    # Local user
    # =========================================================================

    def load_local_user(self) -> User:
        user = self._decode(User, self.root / "local_user.json")
        user.local = True
        return user

    def save_local_user(self, user: User) -> None:
        self._write(self.root / "local_user.json", user.to_dict())

    # =========================================================================
    # Known (remote) users
    # =========================================================================

    def list_known_users(self) -> list[str]:
        return self._list_stems(self.root / "users")

    def load_known_user(self, user_id: str) -> User:
        user = self._decode(User, self.root / "users" / f"{_sanitize_name(user_id)}.json")
        user.local = False
        return user

    def save_known_user(self, user: User) -> None:
        self._write(self.root / "users" / f"{_sanitize_name(user.id)}.json", user.to_dict())

    # =========================================================================
    # Connections
    # =========================================================================

    def list_connections(self) -> list[str]:
        """Remote ids that have a connection record under any local id."""
        base = self.root / "connections"
        if not base.is_dir():
            return []
        remote_ids: set[str] = set()
        try:
            for local_dir in base.iterdir():
                if local_dir.is_dir():
                    remote_ids.update(self._list_stems(local_dir))
        except OSError as e:
            raise StorageError(f"Cannot list connections: {e}") from e
        return sorted(remote_ids)

    def load_connection(self, local_id: str, remote_id: str) -> Connection:
        return self._decode(Connection, self._connection_path(local_id, remote_id))

    def save_connection(self, local_id: str, remote_id: str, connection: Connection) -> None:
        self._write(self._connection_path(local_id, remote_id), connection.to_dict())

    def _connection_path(self, local_id: str, remote_id: str) -> Path:
        if not local_id or not remote_id:
            raise NotFoundError("Connection key requires both a local and a remote id")
        return (
            self.root / "connections" / _sanitize_name(local_id) / f"{_sanitize_name(remote_id)}.json"
        )

    # =========================================================================
    # Peers
    # =========================================================================

    def load_peers(self) -> list[str]:
        data = self._read(self.root / "peers.json")
        peers = data.get("peers", [])
        if not isinstance(peers, list):
            raise StorageError("peers.json: 'peers' is not a list")
        return [str(p) for p in peers]

    def save_peers(self, peers: list[str]) -> None:
        self._write(self.root / "peers.json", {"peers": list(peers)})

    # =========================================================================
    # File helpers
    # =========================================================================

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise NotFoundError(f"Not found: {path.name}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {path.name}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Cannot read {path.name}: expected an object")
        return data

    def _decode(self, record_type: type[_Record], path: Path) -> _Record:
        """Read a record and build it; missing or mistyped fields are corrupt."""
        data = self._read(path)
        try:
            return record_type.from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise StorageError(f"Cannot read {path.name}: missing or invalid field {e}") from e

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Cannot write {path.name}: {e}") from e
        logger.debug("Wrote %s", path)

    def _list_stems(self, directory: Path) -> list[str]:
        if not directory.is_dir():
            return []
        try:
            return sorted(p.stem for p in directory.glob("*.json"))
        except OSError as e:
            raise StorageError(f"Cannot list {directory.name}: {e}") from e
