"""Pure data types for accord.core.

These are simple dataclasses mirroring the entities the node and the
persistence collaborator hand to the console. They carry no behavior beyond
small predicates and dict conversion.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any

UNNAMED = "(unnamed)"


@dataclass
class UserMeta:
    """Metadata attached to a user.

    Attributes:
        display_name: Human-chosen nick, if any.
        extra: Any other metadata fields, kept verbatim.
    """

    display_name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {"display_name": self.display_name, **self.extra}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserMeta:
        """Create from JSON dict."""
        extra = {k: v for k, v in data.items() if k != "display_name"}
        return cls(display_name=data.get("display_name"), extra=extra)


@dataclass
class User:
    """A user known to the node.

    Attributes:
        id: Stable user identifier.
        public_key: The user's public key (encoded).
        meta: Display metadata.
        local: True for the identity owned by this client.
    """

    id: str
    public_key: str
    meta: UserMeta = field(default_factory=UserMeta)
    local: bool = False

    def is_local(self) -> bool:
        return self.local

    @property
    def display_name(self) -> str:
        """Display name, or a placeholder when unset."""
        return self.meta.display_name or UNNAMED

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "public_key": self.public_key,
            "meta": self.meta.to_dict(),
            "local": self.local,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        """Create from JSON dict."""
        return cls(
            id=data["id"],
            public_key=data.get("public_key", ""),
            meta=UserMeta.from_dict(data.get("meta") or {}),
            local=bool(data.get("local", False)),
        )


@dataclass
class Connection:
    """A connection between the local user and a peer.

    Attributes:
        from_id: Initiating user.
        to_id: Receiving user.
        public_key: Our key for this connection.
        their_public_key: The peer's key, known once accepted.
    """

    from_id: str
    to_id: str
    public_key: str | None = None
    their_public_key: str | None = None

    def is_established(self) -> bool:
        return self.their_public_key is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "from_id": self.from_id,
            "to_id": self.to_id,
            "public_key": self.public_key,
            "their_public_key": self.their_public_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Connection:
        """Create from JSON dict."""
        return cls(
            from_id=data["from_id"],
            to_id=data["to_id"],
            public_key=data.get("public_key"),
            their_public_key=data.get("their_public_key"),
        )


@dataclass(frozen=True)
class Message:
    """Message envelope submitted to the node for storage.

    Attributes:
        from_id: Sender (always the local user).
        to_id: Recipient user id.
        plugin_type: Payload type, "text" for plain messages.
        plugin_body: Structured payload.
        timestamp: Creation time (seconds since epoch).
    """

    from_id: str
    to_id: str
    plugin_type: str
    plugin_body: Any
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "from_id": self.from_id,
            "to_id": self.to_id,
            "plugin_type": self.plugin_type,
            "plugin_body": self.plugin_body,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Create from JSON dict."""
        return cls(
            from_id=data["from_id"],
            to_id=data["to_id"],
            plugin_type=data["plugin_type"],
            plugin_body=data.get("plugin_body"),
            timestamp=data.get("timestamp", 0.0),
        )

    def to_bytes(self) -> bytes:
        """Canonical encoding submitted with STORE_MESSAGE."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":")).encode("utf-8")


@dataclass(frozen=True)
class NodeStatus:
    """Lifecycle status of the node as seen by the console.

    Stopped when address is None, Running{address} otherwise.
    """

    address: str | None = None

    @property
    def running(self) -> bool:
        return self.address is not None

    def __str__(self) -> str:
        if self.address is None:
            return "Stopped"
        return f"Running  ({self.address})"


STOPPED = NodeStatus()
