"""Pytest configuration and fixtures for gossipnode testing.

Fixtures build nodes and local clusters in a known state so individual tests
only describe the messages they care about. Every node built here owns its
own NodeState; nothing is shared between tests.
"""

from collections.abc import Iterator

import pytest
from loguru import logger

from gossipnode.cluster import LocalCluster
from gossipnode.gossip.engine import GossipEngine, GossipStrategy
from gossipnode.message import Envelope, MessageBody
from gossipnode.node.dispatcher import ProtocolDispatcher
from gossipnode.node.state import NodeState

PEERS = ("n1", "n2", "n3")


def envelope(body: MessageBody, *, src: str = "c1", dest: str = "n1") -> Envelope:
    """Wrap a body the way the harness would address it."""
    return Envelope(src=src, dest=dest, body=body)


@pytest.fixture(autouse=True)
def quiet_logging() -> Iterator[None]:
    """Keep loguru output out of test reports unless a test adds a sink."""
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def state() -> NodeState:
    """State of node n1 in a three node cluster, no topology yet."""
    node_state = NodeState()
    node_state.set_identity("n1", PEERS)
    return node_state


@pytest.fixture
def flood_engine(state: NodeState) -> GossipEngine:
    return GossipEngine(state=state, strategy=GossipStrategy.FLOOD)


@pytest.fixture
def anti_entropy_engine(state: NodeState) -> GossipEngine:
    return GossipEngine(state=state, strategy=GossipStrategy.ANTI_ENTROPY)


@pytest.fixture
def dispatcher(state: NodeState, flood_engine: GossipEngine) -> ProtocolDispatcher:
    return ProtocolDispatcher(state=state, engine=flood_engine)


@pytest.fixture(params=list(GossipStrategy), ids=lambda strategy: strategy.value)
def strategy(request: pytest.FixtureRequest) -> GossipStrategy:
    return request.param


@pytest.fixture
def three_node_cluster(strategy: GossipStrategy) -> LocalCluster:
    """An initialized three node cluster without an explicit topology."""
    cluster = LocalCluster(node_ids=PEERS, strategy=strategy)
    cluster.init()
    return cluster
