"""Tests for the event-feed frame decoder."""

from __future__ import annotations

import zlib

from protect_downloader.errors import DecodeError
from protect_downloader.models.events import DecodedFrame
from protect_downloader.stream.decoder import decode_frame, encode_frame
from tests.protect_downloader.frames import (
    BASIC_CAMERA_ID,
    BASIC_START_MS,
    START_MOTION,
    START_SMART,
)


def test_decodes_captured_camera_update() -> None:
    """Captured basic motion frame decodes to a camera/update action."""
    # Given a frame captured from a real NVR
    # When decoding it
    frame = decode_frame(START_MOTION)

    # Then the action header and payload are both available
    assert isinstance(frame, DecodedFrame)
    assert frame.action.action == "update"
    assert frame.action.model_key == "camera"
    assert frame.action.id == BASIC_CAMERA_ID
    assert frame.payload["isMotionDetected"] is True
    assert frame.payload["lastMotion"] == BASIC_START_MS


def test_decodes_captured_smart_event_add() -> None:
    """Captured smart detection frame decodes to an event/add action."""
    # Given a smart detection frame
    # When decoding it
    frame = decode_frame(START_SMART)

    # Then the payload carries the smart detect zone details
    assert isinstance(frame, DecodedFrame)
    assert frame.action.action == "add"
    assert frame.action.model_key == "event"
    assert frame.payload["type"] == "smartDetectZone"
    assert frame.payload["smartDetectTypes"]


def test_invalid_buffer_returns_error_value() -> None:
    """Garbage input is reported as a DecodeError value, not raised."""
    # Given a buffer that is not a feed frame
    # When decoding it
    result = decode_frame(b"INVALID BUFFER")

    # Then a DecodeError is returned
    assert isinstance(result, DecodeError)


def test_truncated_header_returns_header_error() -> None:
    """Buffers shorter than a header fail at the header stage."""
    # Given a buffer too short to hold the size field
    # When decoding it
    result = decode_frame(b"\x01\x01")

    # Then the error names the header stage
    assert isinstance(result, DecodeError)
    assert result.stage == "header"


def test_payload_must_be_an_object() -> None:
    """A payload packet holding a JSON list is rejected."""
    # Given a frame whose payload body is a list
    action_body = zlib.compress(b'{"action": "update", "id": "x", "modelKey": "camera"}')
    payload_body = zlib.compress(b"[1, 2, 3]")
    message = (
        bytes([1, 1, 1, 0])
        + len(action_body).to_bytes(4, "big")
        + action_body
        + bytes([2, 1, 1, 0])
        + len(payload_body).to_bytes(4, "big")
        + payload_body
    )

    # When decoding it
    result = decode_frame(message)

    # Then the payload stage fails
    assert isinstance(result, DecodeError)
    assert result.stage == "payload"


def test_action_without_model_key_is_rejected() -> None:
    """Action packets missing required fields fail validation."""
    # Given a frame whose action lacks modelKey
    message = encode_frame({"action": "update", "id": "abc"}, {"lastMotion": 1})

    # When decoding it
    result = decode_frame(message)

    # Then the action stage fails and keeps the validation error as cause
    assert isinstance(result, DecodeError)
    assert result.stage == "action"
    assert result.cause is not None


def test_encoded_frame_decodes_back() -> None:
    """Frames built by encode_frame follow the NVR wire layout."""
    # Given an encoded frame
    message = encode_frame(
        {"action": "add", "id": "evt-1", "modelKey": "event", "newUpdateId": "u-1"},
        {"id": "evt-1", "camera": "cam-1", "start": 5},
    )

    # When decoding it
    frame = decode_frame(message)

    # Then action extras and payload survive
    assert isinstance(frame, DecodedFrame)
    assert frame.action.new_update_id == "u-1"
    assert frame.payload == {"id": "evt-1", "camera": "cam-1", "start": 5}
    assert message[0] == 1
    assert message[8 + int.from_bytes(message[4:8], "big")] == 2
