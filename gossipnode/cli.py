import random
import sys
from dataclasses import dataclass

from jsonargparse import CLI
from loguru import logger

from gossipnode.cluster import TOPOLOGY_SHAPES, LocalCluster
from gossipnode.config import GossipNodeSettings
from gossipnode.core.logging import configure_logging
from gossipnode.errors import GossipNodeError
from gossipnode.gossip.engine import GossipStrategy
from gossipnode.node.runtime import GossipNode


@dataclass(slots=True)
class GossipNodeCLI:
    """gossipnode command line interface for running and simulating cluster nodes."""

    def _settings(
        self, strategy: GossipStrategy | None, log_level: str | None
    ) -> GossipNodeSettings:
        overrides = {"strategy": strategy, "log_level": log_level}
        settings = GossipNodeSettings(
            **{key: value for key, value in overrides.items() if value is not None}
        )
        configure_logging(
            settings.log_level,
            debug_scopes=settings.debug_scopes,
            colorize=settings.colorize,
        )
        return settings

    def run(
        self,
        strategy: GossipStrategy | None = None,
        log_level: str | None = None,
    ) -> None:
        """Runs one node, reading envelopes from stdin and writing to stdout.

        Args:
            strategy: Propagation strategy; defaults to GOSSIPNODE_STRATEGY or flood.
            log_level: Minimum stderr log level; defaults to GOSSIPNODE_LOG_LEVEL.
        """
        settings = self._settings(strategy, log_level)
        node = GossipNode.from_settings(settings)
        try:
            node.serve(sys.stdin.buffer, sys.stdout.buffer)
        except GossipNodeError as e:
            logger.opt(exception=e).critical("Fatal fault on node {}", node.node_id)
            sys.exit(1)

    def simulate(
        self,
        nodes: int = 5,
        shape: str = "ring",
        values: int = 3,
        strategy: GossipStrategy | None = None,
        seed: int = 0,
        shuffle: bool = False,
        duplicate_rate: float = 0.0,
        log_level: str | None = None,
    ) -> bool:
        """Runs an in-process cluster and reports whether it converged.

        Args:
            nodes: Number of nodes (named n0, n1, ...).
            shape: Topology shape: full, ring, line or star.
            values: Number of values broadcast at randomly chosen nodes.
            strategy: Propagation strategy; defaults to GOSSIPNODE_STRATEGY or flood.
            seed: Seed for node choice, delivery shuffling and duplication.
            shuffle: Deliver in-flight messages in random order.
            duplicate_rate: Probability that a gossip push is delivered twice.
            log_level: Minimum stderr log level; defaults to GOSSIPNODE_LOG_LEVEL.
        """
        if shape not in TOPOLOGY_SHAPES:
            raise ValueError(
                f"Unknown shape {shape!r}, expected one of {sorted(TOPOLOGY_SHAPES)}"
            )
        settings = self._settings(strategy, log_level)
        node_ids = tuple(f"n{index}" for index in range(nodes))
        cluster = LocalCluster(
            node_ids=node_ids,
            strategy=settings.strategy,
            shuffle=shuffle,
            duplicate_rate=duplicate_rate,
            seed=seed,
        )
        cluster.init()
        cluster.set_topology(TOPOLOGY_SHAPES[shape](node_ids))

        rng = random.Random(seed)
        broadcast = list(range(values))
        for value in broadcast:
            cluster.broadcast(rng.choice(node_ids), value)

        for node_id, seen in cluster.values().items():
            logger.info("{}: {}", node_id, seen)
        logger.info("Messages by type: {}", dict(cluster.message_counts))
        converged = cluster.converged(broadcast)
        logger.info(
            "{} {} cluster of {} node(s) {}",
            settings.strategy.value,
            shape,
            nodes,
            "converged" if converged else "did NOT converge",
        )
        return converged


def main() -> None:
    result = CLI(GossipNodeCLI, as_dict=False)  # type: ignore[no-untyped-call]
    if result is False:
        sys.exit(1)


if __name__ == "__main__":
    main()
