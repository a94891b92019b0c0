"""Tests for the GossipNode line loop."""

import io

import orjson
import pytest

from gossipnode.config import GossipNodeSettings
from gossipnode.errors import MalformedMessage, ProtocolViolation, SerializationFault
from gossipnode.gossip.engine import GossipStrategy
from gossipnode.node.runtime import GossipNode


def line(src: str, dest: str, body: dict) -> bytes:
    return orjson.dumps({"src": src, "dest": dest, "body": body}) + b"\n"


def output_lines(stdout: io.BytesIO) -> list[dict]:
    return [orjson.loads(raw) for raw in stdout.getvalue().splitlines()]


INIT = line(
    "c0",
    "n1",
    {"type": "init", "msg_id": 1, "node_id": "n1", "node_ids": ["n1", "n2", "n3"]},
)


def test_serve_handles_a_session():
    stdin = io.BytesIO(
        INIT
        + line(
            "c1", "n1", {"type": "topology", "msg_id": 2, "topology": {"n1": ["n2"]}}
        )
        + b"\n"
        + line("c1", "n1", {"type": "broadcast", "msg_id": 3, "message": 5})
        + line("c1", "n1", {"type": "read", "msg_id": 4})
    )
    stdout = io.BytesIO()

    handled = GossipNode().serve(stdin, stdout)

    assert handled == 4
    out = output_lines(stdout)
    assert [msg["body"]["type"] for msg in out] == [
        "init_ok",
        "topology_ok",
        "broadcast_ok",
        "gossip_push",
        "read_ok",
    ]
    init_ok, topology_ok, broadcast_ok, push, read_ok = out
    assert init_ok == {
        "src": "n1",
        "dest": "c0",
        "body": {"type": "init_ok", "msg_id": 1, "in_reply_to": 1},
    }
    assert broadcast_ok["body"]["in_reply_to"] == 3
    assert push["dest"] == "n2"
    assert "in_reply_to" not in push["body"]
    assert push["body"]["message"] == 5
    assert read_ok["body"]["messages"] == [5]

    ids = [msg["body"]["msg_id"] for msg in out]
    assert ids == sorted(set(ids))


def test_serve_empty_input():
    assert GossipNode().serve(io.BytesIO(b""), io.BytesIO()) == 0


def test_echo_and_generate():
    node = GossipNode()
    node.handle_line(INIT)

    echo_line = line("c1", "n1", {"type": "echo", "msg_id": 2, "echo": "hi"})
    [echo] = node.handle_line(echo_line)
    assert orjson.loads(echo)["body"]["echo"] == "hi"

    [generated] = node.handle_line(
        line("c1", "n1", {"type": "generate", "msg_id": 3})
    )
    body = orjson.loads(generated)["body"]
    assert body["id"] == f"n1-{body['msg_id']}"


def test_malformed_input_is_fatal_and_writes_nothing():
    read = line("c1", "n1", {"type": "read", "msg_id": 9})
    stdin = io.BytesIO(INIT + b"{broken\n" + read)
    stdout = io.BytesIO()

    with pytest.raises(MalformedMessage):
        GossipNode().serve(stdin, stdout)

    assert [msg["body"]["type"] for msg in output_lines(stdout)] == ["init_ok"]


def test_unsupported_type_is_fatal():
    node = GossipNode()
    with pytest.raises(ProtocolViolation):
        node.handle_line(
            line("n2", "n1", {"type": "broadcast_ok", "in_reply_to": 1})
        )


def test_unwritable_output_is_a_serialization_fault():
    stdout = io.BytesIO()
    stdout.close()
    with pytest.raises(SerializationFault):
        GossipNode().serve(io.BytesIO(INIT), stdout)


def test_broadcast_before_init_is_kept_without_forwarding():
    node = GossipNode()
    out = node.handle_line(
        line("c1", "n1", {"type": "broadcast", "msg_id": 1, "message": 4})
    )
    assert [orjson.loads(raw)["body"]["type"] for raw in out] == ["broadcast_ok"]
    assert node.state.values == frozenset({4})


def test_from_settings_uses_strategy():
    settings = GossipNodeSettings(strategy=GossipStrategy.ANTI_ENTROPY)
    node = GossipNode.from_settings(settings)
    assert node.engine.strategy is GossipStrategy.ANTI_ENTROPY


def test_nodes_do_not_share_state():
    first, second = GossipNode(), GossipNode()
    first.handle_line(INIT)
    first.handle_line(
        line("c1", "n1", {"type": "broadcast", "msg_id": 2, "message": 1})
    )
    assert second.state.values == frozenset()
    assert second.node_id is None


def test_out_of_range_broadcast_is_rejected_before_state_changes():
    node = GossipNode()
    node.handle_line(INIT)
    oversized = (
        b'{"src": "c1", "dest": "n1",'
        b' "body": {"type": "broadcast", "msg_id": 2, "message": 18446744073709551616}}'
    )

    with pytest.raises(MalformedMessage):
        node.handle_line(oversized)

    assert node.state.values == frozenset()
    [reply] = node.handle_line(line("c1", "n1", {"type": "read", "msg_id": 3}))
    assert orjson.loads(reply)["body"]["messages"] == []
