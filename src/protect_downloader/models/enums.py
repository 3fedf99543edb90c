"""Centralized enums for type safety and IDE support."""

from enum import StrEnum


class MotionType(StrEnum):
    """How a motion interval was detected by the camera."""

    SMART = "smart"
    BASIC = "basic"


class ModelKey(StrEnum):
    """Domain object kinds referenced by event-stream actions."""

    EVENT = "event"
    CAMERA = "camera"


class ActionType(StrEnum):
    """Mutation kinds carried by event-stream actions."""

    ADD = "add"
    UPDATE = "update"


class ConnectionState(StrEnum):
    """Lifecycle states of the live event-stream connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    TERMINATED = "terminated"
