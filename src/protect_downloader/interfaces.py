"""Interface definitions for protect-downloader components."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from protect_downloader.models.events import CameraRef, MotionEndEvent, MotionEvent
    from protect_downloader.models.nvr import CameraDetails


class Shutdownable(ABC):
    """Async shutdown interface for managed components."""

    @abstractmethod
    async def shutdown(self, timeout: float | None = None) -> None:
        """Release resources and stop background work."""
        raise NotImplementedError


class VideoExporter(ABC):
    """NVR side of a download: camera lookup plus the video export stream."""

    @abstractmethod
    def get_camera(self, camera_id: str) -> CameraDetails | None:
        """Look up a camera in the NVR camera directory."""
        raise NotImplementedError

    @abstractmethod
    def export_video(
        self, camera_id: str, start: int, end: int, filename: str
    ) -> AsyncIterator[bytes]:
        """Stream the recorded video between two millisecond timestamps.

        Raises NvrError (or a transport error) when the export is rejected.
        """
        raise NotImplementedError


class ClipSink(ABC):
    """Destination for downloaded clip bytes."""

    @abstractmethod
    async def write_stream(self, dest_path: str, chunks: AsyncIterator[bytes]) -> Path:
        """Write a byte stream under a relative destination path.

        Returns the final local path.
        """
        raise NotImplementedError


class MotionDownloader(ABC):
    """Turns one completed motion interval into a stored clip."""

    @abstractmethod
    async def download(self, event: MotionEndEvent) -> None:
        """Download the clip; any raised exception counts as a failed attempt."""
        raise NotImplementedError


class MotionPublisher(Shutdownable, ABC):
    """Republishes normalized motion events to a message bus."""

    @abstractmethod
    async def publish_motion(self, event: MotionEvent, camera: CameraRef) -> None:
        """Publish a motion start or end for a camera."""
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Health check. Returns True if the bus is reachable."""
        raise NotImplementedError
