"""
Routing of incoming envelopes to handlers.

The dispatcher maps each supported body ``type`` to exactly one handler.
A kind with no handler (including reply kinds such as ``read_ok``, which a
node never expects to receive) raises :class:`ProtocolViolation`; the
harness relies on a node crashing instead of dropping such messages.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeAlias

from ..core.logging import node_logger
from ..errors import ProtocolViolation
from ..gossip.engine import GossipEngine
from ..message import (
    BroadcastBody,
    BroadcastOkBody,
    EchoBody,
    EchoOkBody,
    Envelope,
    GenerateOkBody,
    GossipPushBody,
    InitBody,
    InitOkBody,
    ReadOkBody,
    ReplyBody,
    TopologyBody,
    TopologyOkBody,
)
from .state import NodeState

Handler: TypeAlias = Callable[[Envelope], list[Envelope]]


@dataclass(slots=True)
class ProtocolDispatcher:
    """Total mapping from body type to handler for one node."""

    state: NodeState
    engine: GossipEngine
    _handlers: dict[str, Handler] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self._handlers = {
            "init": self._handle_init,
            "echo": self._handle_echo,
            "generate": self._handle_generate,
            "topology": self._handle_topology,
            "broadcast": self._handle_broadcast,
            "read": self._handle_read,
            "gossip_push": self._handle_gossip_push,
        }

    @property
    def supported_types(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def dispatch(self, envelope: Envelope) -> list[Envelope]:
        """Handle one envelope and return every envelope it causes, in order."""
        handler = self._handlers.get(envelope.body_type)
        if handler is None:
            raise ProtocolViolation(
                f"Unsupported message type {envelope.body_type!r} "
                f"from {envelope.src}",
                body_type=envelope.body_type,
            )
        return handler(envelope)

    def reply(
        self, request: Envelope, body: ReplyBody, *, msg_id: int | None = None
    ) -> Envelope:
        """Address ``body`` back to the sender of ``request``."""
        body.msg_id = msg_id if msg_id is not None else self.state.next_message_id()
        body.in_reply_to = request.body.msg_id
        return Envelope(
            src=self.state.node_id or request.dest,
            dest=request.src,
            body=body,
        )

    def _handle_init(self, envelope: Envelope) -> list[Envelope]:
        body = envelope.body
        assert isinstance(body, InitBody)
        self.state.set_identity(body.node_id, body.node_ids)
        node_logger(self.state.node_id).info(
            "Initialized with {} peer(s): {}", len(body.node_ids), body.node_ids
        )
        return [self.reply(envelope, InitOkBody())]

    def _handle_echo(self, envelope: Envelope) -> list[Envelope]:
        body = envelope.body
        assert isinstance(body, EchoBody)
        return [self.reply(envelope, EchoOkBody(echo=body.echo))]

    def _handle_generate(self, envelope: Envelope) -> list[Envelope]:
        reply_id = self.state.next_message_id()
        generated = GenerateOkBody(id=f"{self.state.node_id or ''}-{reply_id}")
        return [self.reply(envelope, generated, msg_id=reply_id)]

    def _handle_topology(self, envelope: Envelope) -> list[Envelope]:
        body = envelope.body
        assert isinstance(body, TopologyBody)
        self.state.set_topology(body.topology)
        node_logger(self.state.node_id).info(
            "Topology set, neighbors: {}", self.state.neighbors()
        )
        return [self.reply(envelope, TopologyOkBody())]

    def _handle_broadcast(self, envelope: Envelope) -> list[Envelope]:
        body = envelope.body
        assert isinstance(body, BroadcastBody)
        ack = self.reply(envelope, BroadcastOkBody())
        return [ack, *self.engine.disseminate(body.message)]

    def _handle_read(self, envelope: Envelope) -> list[Envelope]:
        return [self.reply(envelope, ReadOkBody(messages=self.state.snapshot()))]

    def _handle_gossip_push(self, envelope: Envelope) -> list[Envelope]:
        body = envelope.body
        assert isinstance(body, GossipPushBody)
        return self.engine.disseminate(body.message, body.known)
