"""Mock motion publisher for testing."""

from __future__ import annotations

import asyncio

from protect_downloader.interfaces import MotionPublisher
from protect_downloader.models.events import CameraRef, MotionEvent


class MockPublisher(MotionPublisher):
    """Stores published motion events in a list for test assertions."""

    def __init__(self, simulate_failure: bool = False, delay_s: float = 0.0) -> None:
        self.simulate_failure = simulate_failure
        self.delay_s = delay_s
        self.published: list[tuple[MotionEvent, CameraRef]] = []
        self.shutdown_called = False

    async def publish_motion(self, event: MotionEvent, camera: CameraRef) -> None:
        if self.delay_s > 0:
            await asyncio.sleep(self.delay_s)
        if self.simulate_failure:
            raise RuntimeError("Simulated publish failure")
        self.published.append((event, camera))

    async def ping(self) -> bool:
        return not self.simulate_failure

    async def shutdown(self, timeout: float | None = None) -> None:
        _ = timeout
        self.shutdown_called = True
