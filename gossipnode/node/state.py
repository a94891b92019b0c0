"""
Per-node mutable state.

A :class:`NodeState` is owned by exactly one node and passed explicitly to
the dispatcher and the gossip engine. Nothing here is module-level, so any
number of nodes can live in one process.

The processing loop handles one message at a time, which makes every
mutator below atomic with respect to the protocol without any locking.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger

from ..datastructures.type_aliases import (
    BroadcastValue,
    MessageId,
    NeighborList,
    NodeId,
    TopologyInput,
    TopologyMap,
    ValueSnapshot,
)


@dataclass(slots=True)
class NodeState:
    """Identity, peers, topology, seen values and the message id counter."""

    _node_id: NodeId | None = None
    _node_ids: tuple[NodeId, ...] = field(default_factory=tuple)
    _topology: TopologyMap | None = None
    _values: set[BroadcastValue] = field(default_factory=set)
    _last_message_id: MessageId = 0

    @property
    def node_id(self) -> NodeId | None:
        return self._node_id

    @property
    def node_ids(self) -> tuple[NodeId, ...]:
        return self._node_ids

    @property
    def topology(self) -> TopologyMap | None:
        if self._topology is None:
            return None
        return copy.deepcopy(self._topology)

    @property
    def values(self) -> frozenset[BroadcastValue]:
        return frozenset(self._values)

    @property
    def is_initialized(self) -> bool:
        return self._node_id is not None

    def set_identity(self, node_id: NodeId, node_ids: Iterable[NodeId]) -> None:
        """Record identity and peer set. Only the first call takes effect."""
        peers = tuple(node_ids)
        if self._node_id is not None:
            if node_id != self._node_id or peers != self._node_ids:
                logger.warning(
                    "Ignoring conflicting re-init of {} (got node_id={}, peers={})",
                    self._node_id,
                    node_id,
                    peers,
                )
            return
        self._node_id = node_id
        self._node_ids = peers

    def set_topology(self, topology: TopologyInput) -> None:
        """Replace the explicit topology; setting the same map twice is a no-op."""
        self._topology = {
            str(node): [str(neighbor) for neighbor in neighbors]
            for node, neighbors in topology.items()
        }

    def record_value(self, value: BroadcastValue) -> bool:
        """Insert ``value``; return True if it was not already known."""
        if value in self._values:
            return False
        self._values.add(value)
        return True

    def merge_values(self, values: Iterable[BroadcastValue]) -> set[BroadcastValue]:
        """Insert every value; return exactly the ones that were new."""
        added = set(values) - self._values
        self._values |= added
        return added

    def next_message_id(self) -> MessageId:
        self._last_message_id += 1
        return self._last_message_id

    def neighbors(self) -> NeighborList:
        """
        Nodes this node forwards gossip to.

        The explicit topology entry for this node when a topology is set
        (a topology without an entry for us means no neighbors), otherwise
        every peer. Order follows the source list; self is never included.
        """
        if self._topology is not None:
            candidates: Iterable[NodeId] = self._topology.get(self._node_id or "", ())
        else:
            candidates = self._node_ids
        neighbors: NeighborList = []
        for candidate in candidates:
            if candidate != self._node_id and candidate not in neighbors:
                neighbors.append(candidate)
        return neighbors

    def snapshot(self) -> ValueSnapshot:
        """Sorted copy of the value set, detached from internal state."""
        return sorted(self._values)
