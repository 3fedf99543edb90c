"""Downloads the video for a completed motion interval."""

from __future__ import annotations

import logging
from contextlib import aclosing
from pathlib import PurePosixPath

from protect_downloader.downloads.paths import build_clip_path
from protect_downloader.interfaces import ClipSink, MotionDownloader, VideoExporter
from protect_downloader.models.events import MotionEndEvent

logger = logging.getLogger(__name__)


class ClipDownloader(MotionDownloader):
    """Exports a motion interval from the NVR and writes it to a clip sink."""

    def __init__(self, exporter: VideoExporter, sink: ClipSink) -> None:
        self._exporter = exporter
        self._sink = sink

    async def download(self, event: MotionEndEvent) -> None:
        camera = self._exporter.get_camera(event.camera)
        if camera is None:
            logger.error(
                "Encountered unknown camera id: %s, unable to download video", event.camera
            )
            return

        dest_path = build_clip_path(camera.name, event.start)
        logger.info(
            "Downloading video with length: %s seconds, to file path: %s",
            event.duration_s,
            dest_path,
            extra={"camera_name": camera.name},
        )

        chunks = self._exporter.export_video(
            camera.id, event.start, event.end, PurePosixPath(dest_path).name
        )
        # Release the export response even when the sink stops reading partway
        async with aclosing(chunks):
            written = await self._sink.write_stream(dest_path, chunks)
        logger.info("Downloaded clip: %s", written, extra={"camera_name": camera.name})
