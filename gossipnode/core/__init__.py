"""Core plumbing for gossipnode: logging setup."""

from .logging import DEFAULT_LOG_FORMAT, configure_logging, node_logger

__all__ = ["DEFAULT_LOG_FORMAT", "configure_logging", "node_logger"]
