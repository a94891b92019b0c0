"""A single cluster node: state, dispatch and the line-processing loop."""

from .dispatcher import ProtocolDispatcher
from .runtime import GossipNode
from .state import NodeState

__all__ = ["GossipNode", "NodeState", "ProtocolDispatcher"]
