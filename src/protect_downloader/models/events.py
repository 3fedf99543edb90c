"""Event-stream frames and motion interval models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeGuard

from pydantic import BaseModel, ConfigDict, Field

from protect_downloader.models.enums import MotionType


class ActionMetadata(BaseModel):
    """Identifies which domain object an event-stream frame changed."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    action: str
    id: str
    model_key: str = Field(alias="modelKey")
    new_update_id: str | None = Field(default=None, alias="newUpdateId")


class DecodedFrame(BaseModel):
    """One decoded event-stream message: action header plus free-form payload."""

    action: ActionMetadata
    payload: dict[str, Any]


class MotionStartEvent(BaseModel):
    """Motion started on a camera; held until the matching end arrives."""

    camera: str
    start: int
    type: MotionType | None = None


class MotionEndEvent(MotionStartEvent):
    """A completed motion interval, consumed once by the download queue."""

    end: int

    @property
    def duration_s(self) -> int:
        return round((self.end - self.start) / 1000)


MotionEvent = MotionStartEvent | MotionEndEvent


def is_motion_end_event(event: MotionEvent | None) -> TypeGuard[MotionEndEvent]:
    """Return True when the event closes a motion interval."""
    return isinstance(event, MotionEndEvent)


@dataclass(frozen=True)
class QueuedDownload:
    """A motion interval waiting for its next download attempt."""

    event: MotionEndEvent
    retries_remaining: int


class CameraRef(BaseModel):
    """Camera identity embedded in published motion notifications."""

    id: str
    name: str


class MotionNotification(BaseModel):
    """MQTT payload for a motion start or end."""

    camera: CameraRef
    start: int
    end: int | None = None
    type: MotionType | None = None

    @classmethod
    def from_event(cls, event: MotionEvent, camera: CameraRef) -> MotionNotification:
        return cls(
            camera=camera,
            start=event.start,
            end=event.end if isinstance(event, MotionEndEvent) else None,
            type=event.type,
        )
