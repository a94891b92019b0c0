"""
Wire models for the node protocol.

Every line on the wire is an :class:`Envelope` whose ``body`` is one member
of a closed, tagged union keyed by the ``type`` field. Request kinds are
consumed by a node; reply kinds are produced by it. Both live in the same
union so one codec can parse what a node reads and what it writes.
"""

from __future__ import annotations

from typing import Annotated, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, StrictInt

# orjson only encodes integers within the signed or unsigned 64-bit range.
# Strict: booleans and numeric strings are not values.
WireValue = Annotated[StrictInt, Field(ge=-(2**63), le=2**64 - 1)]


class MessageBody(BaseModel):
    """Fields shared by every body kind."""

    model_config = ConfigDict(extra="ignore")

    msg_id: int | None = Field(
        default=None, description="The sender's own identifier for this message."
    )
    in_reply_to: int | None = Field(
        default=None, description="The msg_id of the request this body answers."
    )


class InitBody(MessageBody):
    """Initialization handshake sent once by the harness."""

    type: Literal["init"] = "init"
    node_id: str = Field(description="The identity assigned to the receiver.")
    node_ids: list[str] = Field(description="Every node id in the cluster.")


class InitOkBody(MessageBody):
    type: Literal["init_ok"] = "init_ok"


class EchoBody(MessageBody):
    type: Literal["echo"] = "echo"
    echo: str = Field(description="Payload to be returned verbatim.")


class EchoOkBody(MessageBody):
    type: Literal["echo_ok"] = "echo_ok"
    echo: str


class GenerateBody(MessageBody):
    type: Literal["generate"] = "generate"


class GenerateOkBody(MessageBody):
    type: Literal["generate_ok"] = "generate_ok"
    id: str = Field(description="A cluster-wide unique identifier.")


class TopologyBody(MessageBody):
    """Explicit neighbor map overriding the default full mesh."""

    type: Literal["topology"] = "topology"
    topology: dict[str, list[str]] = Field(
        description="Mapping of node id to its ordered neighbor list."
    )


class TopologyOkBody(MessageBody):
    type: Literal["topology_ok"] = "topology_ok"


class BroadcastBody(MessageBody):
    """A value injected into the cluster by a client."""

    type: Literal["broadcast"] = "broadcast"
    message: WireValue = Field(description="The value to disseminate.")


class BroadcastOkBody(MessageBody):
    type: Literal["broadcast_ok"] = "broadcast_ok"


class ReadBody(MessageBody):
    type: Literal["read"] = "read"


class ReadOkBody(MessageBody):
    type: Literal["read_ok"] = "read_ok"
    messages: list[WireValue] = Field(
        description="Snapshot of every value the node has seen."
    )


class GossipPushBody(MessageBody):
    """
    Node-to-node propagation message.

    Never acknowledged. ``known`` is only populated by the anti-entropy
    strategy and carries the sender's full value set.
    """

    type: Literal["gossip_push"] = "gossip_push"
    message: WireValue = Field(description="The value that triggered the push.")
    known: list[WireValue] | None = Field(
        default=None, description="The sender's full value set, if shared."
    )


ReplyBody: TypeAlias = (
    InitOkBody
    | EchoOkBody
    | GenerateOkBody
    | TopologyOkBody
    | BroadcastOkBody
    | ReadOkBody
)

AnyBody = Annotated[
    InitBody
    | InitOkBody
    | EchoBody
    | EchoOkBody
    | GenerateBody
    | GenerateOkBody
    | TopologyBody
    | TopologyOkBody
    | BroadcastBody
    | BroadcastOkBody
    | ReadBody
    | ReadOkBody
    | GossipPushBody,
    Field(discriminator="type"),
]


class Envelope(BaseModel):
    """One line on the wire."""

    src: str = Field(description="The node or client that sent the message.")
    dest: str = Field(description="The node or client the message is for.")
    body: AnyBody = Field(description="The typed message body.")

    @property
    def body_type(self) -> str:
        return self.body.type
