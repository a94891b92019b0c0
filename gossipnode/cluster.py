"""
In-process cluster of gossip nodes (test/local use).

Each :class:`GossipNode` owns its own state. Nodes never call each other:
every envelope, whether from a client or a peer, is encoded to a wire line,
queued, decoded again and handed to the destination node, exactly as a real
harness would deliver it between processes. Envelopes addressed to anything
that is not a node (client ids such as ``c1``) are collected as client
replies.

Delivery order is FIFO by default. ``shuffle`` delivers a random in-flight
line instead, and ``duplicate_rate`` re-queues copies of gossip pushes, both
driven by a seeded :class:`random.Random` so runs are reproducible.
"""

from __future__ import annotations

import itertools
import random
from collections import Counter, defaultdict, deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from .datastructures.type_aliases import (
    BroadcastValue,
    ClientId,
    NodeId,
    TopologyInput,
    TopologyMap,
)
from .errors import ClusterNotQuiescent
from .gossip.engine import GossipStrategy
from .message import (
    BroadcastBody,
    EchoBody,
    Envelope,
    GenerateBody,
    InitBody,
    MessageBody,
    ReadBody,
    ReadOkBody,
    TopologyBody,
)
from .message_codec import decode_envelope, encode_envelope
from .node.runtime import GossipNode

DEFAULT_CLIENT: ClientId = "c1"
DEFAULT_DELIVERY_BUDGET = 100_000


def full_topology(node_ids: Sequence[NodeId]) -> TopologyMap:
    """Every node neighbors every other node."""
    return {node: [peer for peer in node_ids if peer != node] for node in node_ids}


def ring_topology(node_ids: Sequence[NodeId]) -> TopologyMap:
    """Each node neighbors its predecessor and successor, wrapping around."""
    count = len(node_ids)
    if count < 2:
        return {node: [] for node in node_ids}
    topology: TopologyMap = {}
    for index, node in enumerate(node_ids):
        neighbors = [node_ids[(index - 1) % count], node_ids[(index + 1) % count]]
        topology[node] = list(dict.fromkeys(neighbors))
    return topology


def line_topology(node_ids: Sequence[NodeId]) -> TopologyMap:
    """A path: each node neighbors only the nodes directly before and after it."""
    topology: TopologyMap = {}
    for index, node in enumerate(node_ids):
        neighbors = []
        if index > 0:
            neighbors.append(node_ids[index - 1])
        if index < len(node_ids) - 1:
            neighbors.append(node_ids[index + 1])
        topology[node] = neighbors
    return topology


def star_topology(node_ids: Sequence[NodeId]) -> TopologyMap:
    """The first node is the hub; every other node neighbors only the hub."""
    if not node_ids:
        return {}
    hub, *leaves = node_ids
    topology: TopologyMap = {hub: list(leaves)}
    for leaf in leaves:
        topology[leaf] = [hub]
    return topology


TOPOLOGY_SHAPES = {
    "full": full_topology,
    "ring": ring_topology,
    "line": line_topology,
    "star": star_topology,
}


@dataclass(slots=True)
class LocalCluster:
    """A set of nodes exchanging encoded lines through one in-memory queue."""

    node_ids: tuple[NodeId, ...]
    strategy: GossipStrategy = GossipStrategy.FLOOD
    shuffle: bool = False
    duplicate_rate: float = 0.0
    seed: int | None = 0
    nodes: dict[NodeId, GossipNode] = field(init=False)
    client_replies: defaultdict[ClientId, list[Envelope]] = field(init=False)
    message_counts: Counter[str] = field(init=False)
    deliveries: int = field(init=False, default=0)
    _in_flight: deque[bytes] = field(init=False)
    _rng: random.Random = field(init=False)
    _client_msg_ids: itertools.count[int] = field(init=False)

    def __post_init__(self) -> None:
        self.node_ids = tuple(self.node_ids)
        if len(set(self.node_ids)) != len(self.node_ids):
            raise ValueError(f"Duplicate node ids in {self.node_ids}")
        if not 0.0 <= self.duplicate_rate < 1.0:
            raise ValueError(
                f"duplicate_rate must be in [0, 1), got {self.duplicate_rate}"
            )
        self.nodes = {
            node_id: GossipNode(strategy=self.strategy) for node_id in self.node_ids
        }
        self.client_replies = defaultdict(list)
        self.message_counts = Counter()
        self._in_flight = deque()
        self._rng = random.Random(self.seed)
        self._client_msg_ids = itertools.count(1)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def submit(
        self, dest: NodeId, body: MessageBody, *, client: ClientId = DEFAULT_CLIENT
    ) -> int:
        """Queue a client request without delivering anything; return its msg_id."""
        msg_id = next(self._client_msg_ids)
        body.msg_id = msg_id
        self._enqueue(Envelope(src=client, dest=dest, body=body))
        return msg_id

    def request(
        self,
        dest: NodeId,
        body: MessageBody,
        *,
        client: ClientId = DEFAULT_CLIENT,
        max_deliveries: int = DEFAULT_DELIVERY_BUDGET,
    ) -> Envelope:
        """Send a client request, run to quiescence and return its reply."""
        msg_id = self.submit(dest, body, client=client)
        self.run_until_quiescent(max_deliveries)
        for reply in self.client_replies[client]:
            if reply.body.in_reply_to == msg_id:
                return reply
        raise LookupError(f"No reply from {dest} to {client} message {msg_id}")

    def step(self) -> list[Envelope]:
        """Deliver one in-flight line and return the envelopes it produced."""
        if not self._in_flight:
            return []
        if self.shuffle and len(self._in_flight) > 1:
            index = self._rng.randrange(len(self._in_flight))
            line = self._in_flight[index]
            del self._in_flight[index]
        else:
            line = self._in_flight.popleft()

        envelope = decode_envelope(line)
        self.deliveries += 1
        node = self.nodes.get(envelope.dest)
        if node is None:
            self.client_replies[envelope.dest].append(envelope)
            return []

        produced = [decode_envelope(out) for out in node.handle_line(line)]
        for outgoing in produced:
            self._enqueue(outgoing)
        return produced

    def run_until_quiescent(
        self, max_deliveries: int = DEFAULT_DELIVERY_BUDGET
    ) -> int:
        """Deliver until nothing is in flight; return the number of deliveries."""
        delivered = 0
        while self._in_flight:
            if delivered >= max_deliveries:
                raise ClusterNotQuiescent(
                    f"Cluster still busy after {delivered} deliveries",
                    in_flight=len(self._in_flight),
                )
            self.step()
            delivered += 1
        return delivered

    def init(self, *, client: ClientId = DEFAULT_CLIENT) -> None:
        for node_id in self.node_ids:
            self.request(
                node_id,
                InitBody(node_id=node_id, node_ids=list(self.node_ids)),
                client=client,
            )
        logger.debug("Initialized local cluster {}", self.node_ids)

    def set_topology(
        self, topology: TopologyInput, *, client: ClientId = DEFAULT_CLIENT
    ) -> None:
        mapping = {node: list(neighbors) for node, neighbors in topology.items()}
        for node_id in self.node_ids:
            self.request(node_id, TopologyBody(topology=mapping), client=client)

    def broadcast(
        self,
        node_id: NodeId,
        value: BroadcastValue,
        *,
        client: ClientId = DEFAULT_CLIENT,
    ) -> Envelope:
        return self.request(node_id, BroadcastBody(message=value), client=client)

    def read(
        self, node_id: NodeId, *, client: ClientId = DEFAULT_CLIENT
    ) -> list[BroadcastValue]:
        reply = self.request(node_id, ReadBody(), client=client)
        assert isinstance(reply.body, ReadOkBody)
        return reply.body.messages

    def echo(
        self, node_id: NodeId, text: str, *, client: ClientId = DEFAULT_CLIENT
    ) -> Envelope:
        return self.request(node_id, EchoBody(echo=text), client=client)

    def generate(
        self, node_id: NodeId, *, client: ClientId = DEFAULT_CLIENT
    ) -> Envelope:
        return self.request(node_id, GenerateBody(), client=client)

    def values(self) -> dict[NodeId, list[BroadcastValue]]:
        return {node_id: self.read(node_id) for node_id in self.node_ids}

    def converged(self, expected: Iterable[BroadcastValue] | None = None) -> bool:
        """True when all nodes hold equal value sets (matching ``expected``)."""
        snapshots = {tuple(values) for values in self.values().values()}
        if len(snapshots) != 1:
            return False
        if expected is None:
            return True
        return snapshots.pop() == tuple(sorted(set(expected)))

    def _enqueue(self, envelope: Envelope) -> None:
        line = encode_envelope(envelope)
        if envelope.src in self.nodes:
            self.message_counts[envelope.body_type] += 1
        self._in_flight.append(line)
        if (
            envelope.body_type == "gossip_push"
            and self.duplicate_rate
            and self._rng.random() < self.duplicate_rate
        ):
            self._in_flight.append(line)
