"""Tests for GossipEngine flood and anti-entropy propagation."""

from gossipnode.gossip.engine import GossipEngine, GossipStrategy
from gossipnode.message import GossipPushBody
from gossipnode.node.state import NodeState


def push_bodies(pushes) -> list[GossipPushBody]:
    bodies = [push.body for push in pushes]
    assert all(isinstance(body, GossipPushBody) for body in bodies)
    return bodies


class TestFlood:
    def test_new_value_is_pushed_to_every_neighbor(self, flood_engine: GossipEngine):
        pushes = flood_engine.disseminate(5)

        assert [push.dest for push in pushes] == ["n2", "n3"]
        assert all(push.src == "n1" for push in pushes)
        bodies = push_bodies(pushes)
        assert all(body.message == 5 for body in bodies)
        assert all(body.known is None for body in bodies)
        assert all(body.in_reply_to is None for body in bodies)

    def test_each_push_has_its_own_message_id(self, flood_engine: GossipEngine):
        pushes = flood_engine.disseminate(5)
        ids = [push.body.msg_id for push in pushes]
        assert len(set(ids)) == len(ids)
        assert None not in ids

    def test_known_value_is_not_forwarded_again(self, flood_engine: GossipEngine):
        assert flood_engine.disseminate(5)
        assert flood_engine.disseminate(5) == []
        assert flood_engine.statistics.duplicates_suppressed == 1

    def test_topology_restricts_targets(
        self, state: NodeState, flood_engine: GossipEngine
    ):
        state.set_topology({"n1": ["n2"]})
        pushes = flood_engine.disseminate(5)
        assert [push.dest for push in pushes] == ["n2"]

    def test_no_neighbors_means_no_pushes_but_value_is_kept(self):
        state = NodeState()
        engine = GossipEngine(state=state)
        assert engine.disseminate(3) == []
        assert state.values == frozenset({3})

    def test_peer_value_set_is_ignored(
        self, state: NodeState, flood_engine: GossipEngine
    ):
        flood_engine.disseminate(1, known=[1, 2, 3])
        assert state.values == frozenset({1})

    def test_statistics(self, flood_engine: GossipEngine):
        flood_engine.disseminate(1)
        flood_engine.disseminate(2)
        flood_engine.disseminate(1)

        stats = flood_engine.statistics
        assert stats.values_observed == 3
        assert stats.values_added == 2
        assert stats.duplicates_suppressed == 1
        assert stats.pushes_sent == 4


class TestAntiEntropy:
    def test_push_carries_full_value_set(
        self, state: NodeState, anti_entropy_engine: GossipEngine
    ):
        state.merge_values([1, 2])
        pushes = anti_entropy_engine.disseminate(3)

        assert [push.dest for push in pushes] == ["n2", "n3"]
        for body in push_bodies(pushes):
            assert body.message == 3
            assert body.known == [1, 2, 3]

    def test_peer_set_is_merged(
        self, state: NodeState, anti_entropy_engine: GossipEngine
    ):
        pushes = anti_entropy_engine.disseminate(1, known=[7, 8])
        assert state.values == frozenset({1, 7, 8})
        assert all(body.known == [1, 7, 8] for body in push_bodies(pushes))

    def test_forwards_when_only_the_peer_set_is_new(
        self, state: NodeState, anti_entropy_engine: GossipEngine
    ):
        state.record_value(1)
        pushes = anti_entropy_engine.disseminate(1, known=[1, 2])
        assert len(pushes) == 2
        assert state.values == frozenset({1, 2})

    def test_nothing_new_means_no_pushes(
        self, state: NodeState, anti_entropy_engine: GossipEngine
    ):
        state.merge_values([1, 2, 3])
        assert anti_entropy_engine.disseminate(2, known=[1, 3]) == []
        assert anti_entropy_engine.statistics.duplicates_suppressed == 1

    def test_broadcast_without_peer_set(self, anti_entropy_engine: GossipEngine):
        pushes = anti_entropy_engine.disseminate(9)
        assert all(body.known == [9] for body in push_bodies(pushes))
        assert anti_entropy_engine.statistics.values_added == 1

    def test_pushes_do_not_share_payload_lists(
        self, anti_entropy_engine: GossipEngine
    ):
        first, second = push_bodies(anti_entropy_engine.disseminate(4))
        assert first.known is not second.known


def test_strategy_values():
    assert GossipStrategy("flood") is GossipStrategy.FLOOD
    assert GossipStrategy("anti_entropy") is GossipStrategy.ANTI_ENTROPY
