"""Shared datastructures and type aliases for gossipnode."""
