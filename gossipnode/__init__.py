"""
gossipnode - one participant of a simulated gossip cluster

A node reads newline-delimited JSON envelopes on stdin, updates its local
state and writes replies and gossip pushes on stdout. Broadcast values are
disseminated over an optional explicit topology until every reachable node
holds the same value set.

## Architecture

- **message / message_codec**: the tagged body union and its line codec
- **node**: NodeState, ProtocolDispatcher and the GossipNode process loop
- **gossip**: GossipEngine with flood and anti-entropy strategies
- **cluster**: LocalCluster, an in-process harness routing encoded lines

## Quick Start

```python
from gossipnode import LocalCluster, ring_topology

cluster = LocalCluster(node_ids=("n1", "n2", "n3"))
cluster.init()
cluster.set_topology(ring_topology(cluster.node_ids))
cluster.broadcast("n1", 5)
assert cluster.converged([5])
```
"""

from .cluster import (
    LocalCluster,
    full_topology,
    line_topology,
    ring_topology,
    star_topology,
)
from .config import GossipNodeSettings
from .errors import (
    ClusterNotQuiescent,
    GossipNodeError,
    MalformedMessage,
    ProtocolViolation,
    SerializationFault,
)
from .gossip import GossipEngine, GossipStatistics, GossipStrategy
from .message import Envelope
from .message_codec import decode_envelope, encode_envelope
from .node import GossipNode, NodeState, ProtocolDispatcher

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = [
    # Node
    "GossipNode",
    "NodeState",
    "ProtocolDispatcher",
    # Gossip
    "GossipEngine",
    "GossipStatistics",
    "GossipStrategy",
    # Wire
    "Envelope",
    "decode_envelope",
    "encode_envelope",
    # Local cluster
    "LocalCluster",
    "full_topology",
    "line_topology",
    "ring_topology",
    "star_topology",
    # Config
    "GossipNodeSettings",
    # Errors
    "GossipNodeError",
    "ProtocolViolation",
    "MalformedMessage",
    "SerializationFault",
    "ClusterNotQuiescent",
]
