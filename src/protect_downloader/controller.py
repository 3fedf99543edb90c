"""Routes feed messages to the correlator, the download queue and the publisher."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from protect_downloader.downloads.queue import DownloadQueue
from protect_downloader.interfaces import MotionPublisher
from protect_downloader.models.enums import MotionType
from protect_downloader.models.events import (
    CameraRef,
    MotionEndEvent,
    MotionEvent,
    is_motion_end_event,
)
from protect_downloader.models.nvr import CameraDetails
from protect_downloader.stream.correlator import MotionCorrelator

logger = logging.getLogger(__name__)


def select_cameras(
    all_cameras: Iterable[CameraDetails], camera_names: Iterable[str]
) -> list[CameraDetails]:
    """Pick the cameras to follow; an empty name list selects every camera."""
    names = set(camera_names)
    cameras = list(all_cameras)
    if not names:
        return cameras
    return [camera for camera in cameras if camera.name in names]


def should_download(
    event: MotionEndEvent, camera: CameraDetails, *, prefer_smart_motion: bool
) -> bool:
    """Decide whether a motion interval gets a clip.

    Cameras with smart detect report both kinds of motion for the same activity,
    so only the preferred kind is downloaded for them.
    """
    if not camera.feature_flags.has_smart_detect:
        return True
    is_smart_event = event.type == MotionType.SMART
    return is_smart_event if prefer_smart_motion else not is_smart_event


class MotionController:
    """Event stream subscriber wiring motion events to downloads and MQTT."""

    def __init__(
        self,
        correlator: MotionCorrelator,
        download_queue: DownloadQueue,
        cameras: Iterable[CameraDetails],
        *,
        prefer_smart_motion: bool = True,
        publisher: MotionPublisher | None = None,
    ) -> None:
        self._correlator = correlator
        self._download_queue = download_queue
        self._cameras_by_id = {camera.id: camera for camera in cameras}
        self._prefer_smart_motion = prefer_smart_motion
        self._publisher = publisher
        self._publish_tasks: set[asyncio.Task[None]] = set()

    @property
    def cameras(self) -> list[CameraDetails]:
        return list(self._cameras_by_id.values())

    def on_message(self, message: bytes) -> None:
        """Event stream subscriber callback."""
        event = self._correlator.process_message(message)
        if event is None:
            return
        camera = self._cameras_by_id.get(event.camera)
        if camera is None:
            return

        if is_motion_end_event(event) and should_download(
            event, camera, prefer_smart_motion=self._prefer_smart_motion
        ):
            logger.info("Processing event: %s", event, extra={"camera_name": camera.name})
            self._download_queue.queue_download(event)

        self._publish(event, camera)

    async def drain(self) -> None:
        """Wait for in-flight publishes to finish."""
        if self._publish_tasks:
            await asyncio.gather(*self._publish_tasks, return_exceptions=True)

    def _publish(self, event: MotionEvent, camera: CameraDetails) -> None:
        if self._publisher is None:
            return
        ref = CameraRef(id=camera.id, name=camera.name)
        task = asyncio.get_running_loop().create_task(self._publisher.publish_motion(event, ref))
        self._publish_tasks.add(task)
        task.add_done_callback(self._publish_tasks.discard)
        task.add_done_callback(self._log_publish_exception)

    def _log_publish_exception(self, task: asyncio.Task[None]) -> None:
        try:
            exc = task.exception()
        except asyncio.CancelledError:
            return
        if exc is not None:
            logger.error("Failed to publish motion event: %s", exc, exc_info=exc)
