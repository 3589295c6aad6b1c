"""Core layer - data types, errors, configuration and persistence."""

from accord.core.config import ConsoleConfig
from accord.core.errors import (
    AccordError,
    GatewayError,
    NodeChannelClosed,
    NodeError,
    NodeStartError,
    NotFoundError,
    ReplyDropped,
    StorageError,
)
from accord.core.storage import FileStore, Store
from accord.core.types import STOPPED, Connection, Message, NodeStatus, User, UserMeta

__all__ = [
    "ConsoleConfig",
    # Errors
    "AccordError",
    "GatewayError",
    "NodeChannelClosed",
    "NodeError",
    "NodeStartError",
    "NotFoundError",
    "ReplyDropped",
    "StorageError",
    # Persistence
    "FileStore",
    "Store",
    # Types
    "Connection",
    "Message",
    "NodeStatus",
    "STOPPED",
    "User",
    "UserMeta",
]
