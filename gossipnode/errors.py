"""Exception hierarchy for gossipnode.

Every exception here is fatal for a node process: the harness expects a node
to crash on a protocol violation rather than silently drop the message.
"""

from __future__ import annotations

from typing import Any


class GossipNodeError(Exception):
    """Base exception for all gossipnode failures."""

    pass


class ProtocolViolation(GossipNodeError):
    """Raised when a message kind reaches a node that does not support it."""

    def __init__(self, message: str, *, body_type: str | None = None) -> None:
        super().__init__(message)
        self.body_type = body_type


class MalformedMessage(ProtocolViolation):
    """Raised when an input line is not a valid envelope.

    Covers invalid JSON, a missing envelope field, an unknown ``type`` tag and
    a body missing the fields its type requires.
    """

    def __init__(self, message: str, *, raw: bytes | str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class SerializationFault(GossipNodeError):
    """Raised when an outgoing envelope cannot be encoded or written."""

    def __init__(self, message: str, *, envelope: Any = None) -> None:
        super().__init__(message)
        self.envelope = envelope


class ClusterNotQuiescent(GossipNodeError):
    """Raised when a local cluster keeps producing messages past its budget."""

    def __init__(self, message: str, *, in_flight: int = 0) -> None:
        super().__init__(message)
        self.in_flight = in_flight
