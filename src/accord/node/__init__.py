"""Node layer - gateway protocol and the loopback node engine."""

from accord.node.engine import LoopbackNode, NodeFactory, parse_listen_address, start_loopback_node
from accord.node.handle import NodeHandle
from accord.node.protocols import Command, CommandType, ReplySlot

__all__ = [
    "Command",
    "CommandType",
    "LoopbackNode",
    "NodeFactory",
    "NodeHandle",
    "ReplySlot",
    "parse_listen_address",
    "start_loopback_node",
]
