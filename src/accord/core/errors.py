"""Accord error types.

All recoverable failures raised by the core, the node gateway and the
persistence collaborator derive from AccordError so the console can contain
them without terminating the session.
"""

from __future__ import annotations


class AccordError(Exception):
    """Base error for Accord operations."""


class StorageError(AccordError):
    """Persistence collaborator failed to read or write a record."""


class NotFoundError(StorageError):
    """Requested record does not exist yet.

    Callers treat this as "does not exist", never as fatal.
    """


class GatewayError(AccordError):
    """Base error for exchanges with the node."""


class NodeChannelClosed(GatewayError):
    """The node's command channel is closed (node task has exited).

    Raised immediately on submission, distinct from waiting on a reply.
    """

    def __init__(self, message: str = "Node channel closed") -> None:
        super().__init__(message)


class ReplyDropped(GatewayError):
    """The node released a reply slot without writing to it."""

    def __init__(self, message: str = "Node dropped the reply") -> None:
        super().__init__(message)


class NodeError(GatewayError):
    """The node replied with an error."""


class NodeStartError(GatewayError):
    """The node could not be started.

    Raised when:
    - The listen address cannot be parsed
    - The listen port cannot be bound
    """
