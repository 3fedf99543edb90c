"""Decoder for the NVR's binary update-feed frames.

Each websocket message holds two packets back to back: an "action" packet followed
by a "payload" packet. Every packet starts with an 8-byte header whose bytes [4, 8)
carry the big-endian size of the packet body; the body is zlib-compressed JSON.
"""

from __future__ import annotations

import json
import struct
import zlib
from typing import Any

from pydantic import ValidationError

from protect_downloader.errors import DecodeError
from protect_downloader.models.events import ActionMetadata, DecodedFrame

PACKET_HEADER_SIZE = 8
PACKET_PAYLOAD_SIZE_OFFSET = 4

_SIZE_FIELD = struct.Struct(">I")


def decode_frame(message: bytes) -> DecodedFrame | DecodeError:
    """Decode one raw feed message into its action and payload.

    Returns a DecodeError value instead of raising so callers can skip bad frames.
    """
    try:
        (action_size,) = _SIZE_FIELD.unpack_from(message, PACKET_PAYLOAD_SIZE_OFFSET)
    except struct.error as exc:
        return DecodeError("header", cause=exc)

    data_offset = PACKET_HEADER_SIZE + action_size

    action_data = _inflate_packet(message[:data_offset], stage="action")
    if isinstance(action_data, DecodeError):
        return action_data
    payload_data = _inflate_packet(message[data_offset:], stage="payload")
    if isinstance(payload_data, DecodeError):
        return payload_data

    if not isinstance(payload_data, dict):
        return DecodeError(
            "payload", cause=TypeError(f"expected object, got {type(payload_data).__name__}")
        )

    try:
        action = ActionMetadata.model_validate(action_data)
    except ValidationError as exc:
        return DecodeError("action", cause=exc)

    return DecodedFrame(action=action, payload=payload_data)


def encode_frame(action: dict[str, Any], payload: dict[str, Any]) -> bytes:
    """Build a feed message in the NVR wire format (used by fakes and tooling)."""
    return _encode_packet(action, packet_type=1) + _encode_packet(payload, packet_type=2)


def _inflate_packet(packet: bytes, *, stage: str) -> Any | DecodeError:
    try:
        text = zlib.decompress(packet[PACKET_HEADER_SIZE:]).decode("utf-8")
        return json.loads(text)
    except (zlib.error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        return DecodeError(stage, cause=exc)


def _encode_packet(data: dict[str, Any], *, packet_type: int) -> bytes:
    body = zlib.compress(json.dumps(data).encode("utf-8"))
    # header: packet type, payload format (json), deflated flag, reserved, body size
    return bytes([packet_type, 1, 1, 0]) + _SIZE_FIELD.pack(len(body)) + body
