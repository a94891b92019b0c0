#!/usr/bin/env python3
"""Broadcast over a sparse topology and watch both strategies converge."""

from gossipnode.cluster import LocalCluster, line_topology
from gossipnode.gossip.engine import GossipStrategy
from gossipnode.message import BroadcastBody


def run(strategy: GossipStrategy) -> None:
    node_ids = ("n1", "n2", "n3", "n4", "n5")
    cluster = LocalCluster(
        node_ids=node_ids, strategy=strategy, shuffle=True, duplicate_rate=0.25
    )
    cluster.init()
    cluster.set_topology(line_topology(node_ids))

    print(f"🚀 {strategy.value} over a 5 node line")
    for value, origin in ((10, "n1"), (20, "n5"), (30, "n3")):
        cluster.submit(origin, BroadcastBody(message=value))
    deliveries = cluster.run_until_quiescent()

    for node_id, values in cluster.values().items():
        print(f"   {node_id}: {values}")
    counts = dict(cluster.message_counts)
    print(f"📨 {deliveries} deliveries, messages by type: {counts}")
    print("✅ converged" if cluster.converged([10, 20, 30]) else "❌ diverged")


def main() -> None:
    for strategy in GossipStrategy:
        run(strategy)
        print()


if __name__ == "__main__":
    main()
