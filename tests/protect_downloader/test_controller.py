"""Tests for motion routing between the feed, downloads and MQTT."""

from __future__ import annotations

import pytest

from protect_downloader.controller import MotionController, select_cameras, should_download
from protect_downloader.downloads.queue import DownloadQueue
from protect_downloader.models.events import MotionEndEvent
from protect_downloader.models.nvr import CameraDetails
from protect_downloader.stream.correlator import MotionCorrelator
from protect_downloader.stream.decoder import encode_frame
from tests.protect_downloader.frames import (
    END_MOTION,
    END_SMART,
    SMART_CAMERA_ID,
    START_MOTION,
    START_SMART,
)
from tests.protect_downloader.mocks import MockDownloader, MockPublisher


def _camera_update(camera: str, *, detected: bool, last_motion: int) -> bytes:
    return encode_frame(
        {"action": "update", "id": camera, "modelKey": "camera"},
        {"isMotionDetected": detected, "lastMotion": last_motion},
    )


class TestSelectCameras:
    def test_empty_names_selects_all(
        self, basic_camera: CameraDetails, smart_camera: CameraDetails
    ) -> None:
        assert select_cameras([basic_camera, smart_camera], []) == [basic_camera, smart_camera]

    def test_names_filter_cameras(
        self, basic_camera: CameraDetails, smart_camera: CameraDetails
    ) -> None:
        assert select_cameras([basic_camera, smart_camera], ["Front Door"]) == [smart_camera]

    def test_unknown_names_select_nothing(self, basic_camera: CameraDetails) -> None:
        assert select_cameras([basic_camera], ["Garage"]) == []


class TestShouldDownload:
    @pytest.mark.parametrize(
        ("event_type", "prefer_smart", "expected"),
        [
            ("smart", True, True),
            ("basic", True, False),
            ("smart", False, False),
            ("basic", False, True),
        ],
    )
    def test_smart_capable_camera_follows_preference(
        self,
        smart_camera: CameraDetails,
        event_type: str,
        prefer_smart: bool,
        expected: bool,
    ) -> None:
        event = MotionEndEvent(camera=smart_camera.id, start=1, end=2, type=event_type)

        assert should_download(event, smart_camera, prefer_smart_motion=prefer_smart) is expected

    @pytest.mark.parametrize("prefer_smart", [True, False])
    def test_basic_camera_always_downloads(
        self, basic_camera: CameraDetails, prefer_smart: bool
    ) -> None:
        event = MotionEndEvent(camera=basic_camera.id, start=1, end=2, type="basic")

        assert should_download(event, basic_camera, prefer_smart_motion=prefer_smart) is True


def _controller(
    cameras: list[CameraDetails],
    *,
    prefer_smart_motion: bool = True,
    publisher: MockPublisher | None = None,
) -> tuple[MotionController, DownloadQueue]:
    queue = DownloadQueue(MockDownloader())
    controller = MotionController(
        MotionCorrelator(),
        queue,
        cameras,
        prefer_smart_motion=prefer_smart_motion,
        publisher=publisher,
    )
    return controller, queue


class TestMotionController:
    @pytest.mark.asyncio
    async def test_completed_basic_motion_is_queued(self, basic_camera: CameraDetails) -> None:
        """A basic start/end pair on a followed camera queues one download."""
        # Given a controller following a basic camera
        controller, queue = _controller([basic_camera])

        # When the start and end frames arrive
        controller.on_message(START_MOTION)
        controller.on_message(END_MOTION)

        # Then exactly one download is waiting
        assert queue.pending == 1

    @pytest.mark.asyncio
    async def test_unfollowed_camera_is_ignored(self, smart_camera: CameraDetails) -> None:
        """Motion on cameras outside the selection neither downloads nor publishes."""
        # Given a controller following only the smart camera
        publisher = MockPublisher()
        controller, queue = _controller([smart_camera], publisher=publisher)

        # When basic camera motion arrives
        controller.on_message(START_MOTION)
        controller.on_message(END_MOTION)
        await controller.drain()

        # Then nothing happens
        assert queue.pending == 0
        assert publisher.published == []

    @pytest.mark.asyncio
    async def test_smart_preference_skips_basic_motion(self, smart_camera: CameraDetails) -> None:
        """Smart-capable cameras only download smart motion when smart is preferred."""
        # Given a controller preferring smart motion on a smart camera
        controller, queue = _controller([smart_camera], prefer_smart_motion=True)

        # When basic motion and then smart motion complete on that camera
        controller.on_message(_camera_update(SMART_CAMERA_ID, detected=True, last_motion=100))
        controller.on_message(_camera_update(SMART_CAMERA_ID, detected=False, last_motion=200))
        assert queue.pending == 0
        controller.on_message(START_SMART)
        controller.on_message(END_SMART)

        # Then only the smart interval is queued
        assert queue.pending == 1

    @pytest.mark.asyncio
    async def test_smart_motion_skipped_when_basic_preferred(
        self, smart_camera: CameraDetails
    ) -> None:
        controller, queue = _controller([smart_camera], prefer_smart_motion=False)

        controller.on_message(START_SMART)
        controller.on_message(END_SMART)

        assert queue.pending == 0

    @pytest.mark.asyncio
    async def test_starts_and_ends_are_published(self, basic_camera: CameraDetails) -> None:
        """Both motion start and end are republished with the camera reference."""
        # Given a controller with a publisher
        publisher = MockPublisher()
        controller, _ = _controller([basic_camera], publisher=publisher)

        # When a motion pair arrives
        controller.on_message(START_MOTION)
        controller.on_message(END_MOTION)
        await controller.drain()

        # Then start and end were published in order
        assert [type(event).__name__ for event, _ in publisher.published] == [
            "MotionStartEvent",
            "MotionEndEvent",
        ]
        assert all(ref.name == basic_camera.name for _, ref in publisher.published)

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_block_downloads(
        self, basic_camera: CameraDetails
    ) -> None:
        publisher = MockPublisher(simulate_failure=True)
        controller, queue = _controller([basic_camera], publisher=publisher)

        controller.on_message(START_MOTION)
        controller.on_message(END_MOTION)
        await controller.drain()

        assert queue.pending == 1

    @pytest.mark.asyncio
    async def test_garbage_messages_are_ignored(self, basic_camera: CameraDetails) -> None:
        controller, queue = _controller([basic_camera])

        controller.on_message(b"INVALID BUFFER")

        assert queue.pending == 0
        assert controller.cameras == [basic_camera]
