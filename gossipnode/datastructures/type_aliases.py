"""
Semantic type aliases for gossipnode.

These aliases keep signatures self-documenting: a node id, a wire message
id and a broadcast value are all plain builtins on the wire, but they play
very different roles in the protocol.
"""

from collections.abc import Mapping, Sequence
from typing import TypeAlias

# Identity types
NodeId: TypeAlias = str
ClientId: TypeAlias = str

# Wire message types
MessageId: TypeAlias = int

# Broadcast payloads
BroadcastValue: TypeAlias = int
ValueSnapshot: TypeAlias = list[BroadcastValue]

# Topology types
NeighborList: TypeAlias = list[NodeId]
TopologyMap: TypeAlias = dict[NodeId, NeighborList]
TopologyInput: TypeAlias = Mapping[NodeId, Sequence[NodeId]]
