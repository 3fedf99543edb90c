"""protect-downloader data models."""

from protect_downloader.models.config import (
    CamerasConfig,
    Config,
    DownloadConfig,
    MotionConfig,
    MQTTAuthConfig,
    MQTTConfig,
    NvrConfig,
    StreamConfig,
)
from protect_downloader.models.enums import ActionType, ConnectionState, ModelKey, MotionType
from protect_downloader.models.events import (
    ActionMetadata,
    CameraRef,
    DecodedFrame,
    MotionEndEvent,
    MotionEvent,
    MotionNotification,
    MotionStartEvent,
    QueuedDownload,
    is_motion_end_event,
)
from protect_downloader.models.nvr import Bootstrap, CameraDetails, FeatureFlags, NvrDetails

__all__ = [
    "ActionMetadata",
    "ActionType",
    "Bootstrap",
    "CameraDetails",
    "CameraRef",
    "CamerasConfig",
    "Config",
    "ConnectionState",
    "DecodedFrame",
    "DownloadConfig",
    "FeatureFlags",
    "MQTTAuthConfig",
    "MQTTConfig",
    "ModelKey",
    "MotionConfig",
    "MotionEndEvent",
    "MotionEvent",
    "MotionNotification",
    "MotionStartEvent",
    "MotionType",
    "NvrConfig",
    "NvrDetails",
    "QueuedDownload",
    "StreamConfig",
    "is_motion_end_event",
]
