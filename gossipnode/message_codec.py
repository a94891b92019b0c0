"""Line codec for :class:`~gossipnode.message.Envelope`."""

from __future__ import annotations

from typing import Any

import orjson
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .errors import MalformedMessage, SerializationFault
from .message import Envelope


def envelope_to_dict(envelope: Envelope) -> dict[str, Any]:
    # Absent optional fields (in_reply_to on gossip pushes, known under
    # flood) are omitted rather than sent as null.
    return envelope.model_dump(mode="json", exclude_none=True)


def envelope_from_dict(payload: Any) -> Envelope:
    if not isinstance(payload, dict):
        raise MalformedMessage(
            f"Envelope must be a JSON object, got {type(payload).__name__}"
        )
    try:
        return Envelope.model_validate(payload)
    except ValidationError as e:
        raise MalformedMessage(f"Invalid envelope: {e}", raw=str(payload)) from e


def decode_envelope(line: bytes | str) -> Envelope:
    """Parse one input line into an envelope, raising MalformedMessage."""
    try:
        payload = orjson.loads(line)
    except orjson.JSONDecodeError as e:
        raise MalformedMessage(f"Invalid JSON: {e}", raw=line) from e
    return envelope_from_dict(payload)


def encode_envelope(envelope: Envelope) -> bytes:
    """Serialize an envelope to one newline-terminated line."""
    try:
        return orjson.dumps(
            envelope_to_dict(envelope), option=orjson.OPT_APPEND_NEWLINE
        )
    except (TypeError, PydanticSerializationError) as e:
        raise SerializationFault(
            f"Cannot encode {envelope.body_type} envelope: {e}", envelope=envelope
        ) from e
