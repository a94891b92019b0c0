"""
The node process loop.

A :class:`GossipNode` bundles one node's state, gossip engine and dispatcher
and turns input lines into output lines. :meth:`GossipNode.serve` is the only
loop: it reads one line, handles it completely, writes and flushes every
resulting line, then reads the next. That loop is the mutual-exclusion
boundary for all state changes.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO

from ..core.logging import node_logger
from ..errors import SerializationFault
from ..gossip.engine import GossipEngine, GossipStrategy
from ..message import Envelope
from ..message_codec import decode_envelope, encode_envelope
from .dispatcher import ProtocolDispatcher
from .state import NodeState

if TYPE_CHECKING:
    from ..config import GossipNodeSettings


@dataclass(slots=True)
class GossipNode:
    """One cluster participant driven by newline-delimited JSON."""

    strategy: GossipStrategy = GossipStrategy.FLOOD
    state: NodeState = field(default_factory=NodeState)
    engine: GossipEngine = field(init=False)
    dispatcher: ProtocolDispatcher = field(init=False)
    lines_handled: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        self.engine = GossipEngine(state=self.state, strategy=self.strategy)
        self.dispatcher = ProtocolDispatcher(state=self.state, engine=self.engine)

    @classmethod
    def from_settings(cls, settings: GossipNodeSettings) -> GossipNode:
        return cls(strategy=settings.strategy)

    @property
    def node_id(self) -> str | None:
        return self.state.node_id

    def handle(self, envelope: Envelope) -> list[Envelope]:
        """Dispatch one parsed envelope; ProtocolViolation propagates."""
        node_logger(self.node_id).debug(
            "Received {} from {}", envelope.body_type, envelope.src
        )
        return self.dispatcher.dispatch(envelope)

    def handle_line(self, line: bytes | str) -> list[bytes]:
        """Decode, dispatch and encode one wire line."""
        outgoing = self.handle(decode_envelope(line))
        self.lines_handled += 1
        return [encode_envelope(envelope) for envelope in outgoing]

    def serve(self, stdin: Iterable[bytes], stdout: BinaryIO) -> int:
        """
        Process lines until ``stdin`` is exhausted.

        Blank lines are skipped. Any GossipNodeError is fatal and propagates
        to the caller; nothing is written for the failing line.

        Returns:
            The number of lines handled.
        """
        node_logger(self.node_id).debug(
            "Serving with {} strategy", self.strategy.value
        )
        for line in stdin:
            if not line.strip():
                continue
            for encoded in self.handle_line(line):
                self._write(stdout, encoded)
        node_logger(self.node_id).info(
            "Input closed after {} message(s); {}",
            self.lines_handled,
            self.engine.statistics,
        )
        return self.lines_handled

    @staticmethod
    def _write(stdout: BinaryIO, encoded: bytes) -> None:
        try:
            stdout.write(encoded)
            stdout.flush()
        except (OSError, ValueError) as e:
            raise SerializationFault(f"Cannot write reply: {e}") from e
