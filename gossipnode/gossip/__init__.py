"""Broadcast propagation strategies."""

from .engine import GossipEngine, GossipStatistics, GossipStrategy

__all__ = ["GossipEngine", "GossipStatistics", "GossipStrategy"]
