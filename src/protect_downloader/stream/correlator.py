"""Correlates motion start/end notifications from the NVR event feed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from protect_downloader.clock import Clock, SystemClock
from protect_downloader.errors import DecodeError
from protect_downloader.models.enums import ActionType, ModelKey, MotionType
from protect_downloader.models.events import (
    ActionMetadata,
    MotionEndEvent,
    MotionEvent,
    MotionStartEvent,
)
from protect_downloader.stream.decoder import decode_frame

logger = logging.getLogger(__name__)

SMART_EVENT_TIMEOUT_S = 10 * 60
SMART_DETECT_ZONE = "smartDetectZone"


@dataclass(frozen=True)
class _PendingSmartEvent:
    event: MotionStartEvent
    created_at: float


class MotionCorrelator:
    """Turns decoded feed frames into motion start and end events.

    Smart detections arrive as an ``event/add`` carrying the event id, camera and
    start timestamp, followed later by an ``event/update`` with the end timestamp.
    Basic motion arrives as ``camera/update`` frames toggling ``isMotionDetected``.
    Start details are held here until the matching end frame shows up.

    Not thread-safe: frames must be fed from a single event loop.
    """

    def __init__(
        self,
        *,
        smart_event_timeout_s: float = SMART_EVENT_TIMEOUT_S,
        clock: Clock | None = None,
    ) -> None:
        self._smart_event_timeout_s = smart_event_timeout_s
        self._clock = clock or SystemClock()
        # event id -> smart motion start
        self._pending_smart: dict[str, _PendingSmartEvent] = {}
        # camera id -> basic motion start timestamp
        self._pending_basic: dict[str, int] = {}

    @property
    def pending_smart_events(self) -> dict[str, MotionStartEvent]:
        self.purge_expired()
        return {event_id: entry.event for event_id, entry in self._pending_smart.items()}

    @property
    def pending_basic_motion(self) -> dict[str, int]:
        return dict(self._pending_basic)

    def process_message(self, message: bytes) -> MotionEvent | None:
        """Decode a raw feed message and correlate it."""
        frame = decode_frame(message)
        if isinstance(frame, DecodeError):
            logger.debug("Skipping unrecognized message: %s", frame)
            return None
        return self.process_frame(frame.action, frame.payload)

    def process_frame(self, action: ActionMetadata, payload: dict[str, Any]) -> MotionEvent | None:
        """Correlate one decoded frame.

        Returns a start event, an end event, or None when the frame is not about motion.
        """
        self.purge_expired()

        if action.model_key == ModelKey.EVENT:
            if action.action == ActionType.ADD:
                return self._smart_motion_start(payload)
            if action.action == ActionType.UPDATE:
                return self._smart_motion_end(action.id, payload)
            return None

        if action.model_key == ModelKey.CAMERA and action.action == ActionType.UPDATE:
            return self._basic_motion(action.id, payload)

        return None

    def purge_expired(self) -> None:
        """Drop smart motion starts whose end never arrived."""
        now = self._clock.now()
        expired = [
            event_id
            for event_id, entry in self._pending_smart.items()
            if now - entry.created_at >= self._smart_event_timeout_s
        ]
        for event_id in expired:
            entry = self._pending_smart.pop(event_id)
            logger.debug(
                "Expired smart motion start: event=%s camera=%s",
                event_id,
                entry.event.camera,
            )

    def _smart_motion_start(self, payload: dict[str, Any]) -> MotionStartEvent | None:
        if payload.get("type") != SMART_DETECT_ZONE or not payload.get("smartDetectTypes"):
            return None

        event_id = payload.get("id")
        camera = payload.get("camera")
        start = payload.get("start")
        if not event_id or not camera or not start:
            return None

        try:
            event = MotionStartEvent(camera=camera, start=start, type=MotionType.SMART)
        except ValidationError as exc:
            logger.debug("Skipping malformed smart motion start: event=%s: %s", event_id, exc)
            return None

        logger.info("Queuing start motion event for camera: %s, start: %d", camera, event.start)
        self._pending_smart[str(event_id)] = _PendingSmartEvent(
            event=event, created_at=self._clock.now()
        )
        return event

    def _smart_motion_end(self, event_id: str, payload: dict[str, Any]) -> MotionEndEvent | None:
        end = payload.get("end")
        entry = self._pending_smart.get(event_id)
        if entry is None or not end:
            return None

        start = entry.event
        try:
            event = MotionEndEvent(camera=start.camera, start=start.start, end=end, type=start.type)
        except ValidationError as exc:
            logger.debug("Skipping malformed smart motion end: event=%s: %s", event_id, exc)
            return None

        # First end wins; later updates for the same event id are ignored
        del self._pending_smart[event_id]
        logger.info(
            "Processing end motion event for camera: %s score: %s",
            start.camera,
            payload.get("score"),
        )
        return event

    def _basic_motion(self, camera: str, payload: dict[str, Any]) -> MotionEvent | None:
        last_motion = payload.get("lastMotion")
        if not last_motion:
            return None

        is_motion_detected = payload.get("isMotionDetected")
        try:
            if is_motion_detected is True:
                start_event = MotionStartEvent(
                    camera=camera, start=last_motion, type=MotionType.BASIC
                )
                # Last write wins when a camera reports a new start before ending the previous one
                logger.info("Processing start basic motion event for camera: %s", camera)
                self._pending_basic[camera] = start_event.start
                return start_event

            if is_motion_detected is False:
                start = self._pending_basic.get(camera)
                if start is None:
                    return None
                end_event = MotionEndEvent(
                    camera=camera, start=start, end=last_motion, type=MotionType.BASIC
                )
                del self._pending_basic[camera]
                logger.info("Processing end basic motion event for camera: %s", camera)
                return end_event
        except ValidationError as exc:
            logger.debug("Skipping malformed basic motion update: camera=%s: %s", camera, exc)

        return None
