"""
Broadcast propagation for a single node.

The engine owns the "is this value new" decision and is the only component
that builds outgoing gossip pushes. Two strategies are supported:

- FLOOD: a value is forwarded to every neighbor the first time this node
  sees it, and never again. Each node forwards a given value at most once,
  so propagation of one value is bounded by the number of edges in the
  neighbor graph and always terminates.
- ANTI_ENTROPY: a push carries the sender's whole value set. Whenever a
  push (or broadcast) teaches this node anything, it forwards its entire
  current set to every neighbor, so a receiver catches up fully no matter
  which earlier pushes it missed. Termination follows from the same
  monotone gate: a push that teaches nothing is not forwarded.

Neither strategy excludes the sender from the forward list. Loop breaking
relies only on the monotone value set.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..core.logging import node_logger
from ..datastructures.type_aliases import BroadcastValue, NodeId
from ..message import Envelope, GossipPushBody

if TYPE_CHECKING:
    from ..node.state import NodeState


class GossipStrategy(Enum):
    """Propagation strategies for broadcast values."""

    FLOOD = "flood"
    ANTI_ENTROPY = "anti_entropy"


@dataclass(slots=True)
class GossipStatistics:
    """Counters describing what the engine has done so far."""

    values_observed: int = 0
    values_added: int = 0
    duplicates_suppressed: int = 0
    pushes_sent: int = 0


@dataclass(slots=True)
class GossipEngine:
    """Decides whether and to whom a newly arrived value is propagated."""

    state: NodeState
    strategy: GossipStrategy = GossipStrategy.FLOOD
    statistics: GossipStatistics = field(default_factory=GossipStatistics)

    def disseminate(
        self,
        value: BroadcastValue,
        known: Iterable[BroadcastValue] | None = None,
    ) -> list[Envelope]:
        """
        Handle one arriving value and return the pushes to send.

        ``known`` is a peer's full value set; it is only consulted by the
        anti-entropy strategy. An empty neighbor list yields no pushes.
        """
        self.statistics.values_observed += 1
        if self.strategy is GossipStrategy.ANTI_ENTROPY:
            return self._anti_entropy(value, known)
        return self._flood(value, known)

    def _flood(
        self, value: BroadcastValue, known: Iterable[BroadcastValue] | None
    ) -> list[Envelope]:
        log = node_logger(self.state.node_id)
        if known is not None:
            log.debug("Flood strategy ignores peer value set on push of {}", value)

        if not self.state.record_value(value):
            self.statistics.duplicates_suppressed += 1
            log.debug("Value {} already known, not forwarding", value)
            return []

        self.statistics.values_added += 1
        return self._push_to_neighbors(value, known=None)

    def _anti_entropy(
        self, value: BroadcastValue, known: Iterable[BroadcastValue] | None
    ) -> list[Envelope]:
        log = node_logger(self.state.node_id)
        incoming = set(known) if known is not None else set()
        incoming.add(value)

        added = self.state.merge_values(incoming)
        if not added:
            self.statistics.duplicates_suppressed += 1
            log.debug("Push of {} taught nothing new, not forwarding", value)
            return []

        self.statistics.values_added += len(added)
        log.debug("Learned {} new value(s) from push of {}", len(added), value)
        return self._push_to_neighbors(value, known=self.state.snapshot())

    def _push_to_neighbors(
        self, value: BroadcastValue, *, known: list[BroadcastValue] | None
    ) -> list[Envelope]:
        pushes = [
            self._push(neighbor, value, known) for neighbor in self.state.neighbors()
        ]
        self.statistics.pushes_sent += len(pushes)
        if pushes:
            node_logger(self.state.node_id).debug(
                "Forwarding {} to {}", value, [push.dest for push in pushes]
            )
        return pushes

    def _push(
        self,
        neighbor: NodeId,
        value: BroadcastValue,
        known: list[BroadcastValue] | None,
    ) -> Envelope:
        # Every push gets its own id, even when the payload is shared.
        body = GossipPushBody(
            msg_id=self.state.next_message_id(),
            message=value,
            known=list(known) if known is not None else None,
        )
        return Envelope(src=self.state.node_id or "", dest=neighbor, body=body)
