"""Local filesystem clip sink."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path, PurePosixPath

from protect_downloader.interfaces import ClipSink

logger = logging.getLogger(__name__)

_PARTIAL_SUFFIX = ".part"


class LocalClipSink(ClipSink):
    """Writes downloaded clips under a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser().resolve()

    async def write_stream(self, dest_path: str, chunks: AsyncIterator[bytes]) -> Path:
        dest = self._full_dest_path(dest_path)
        await asyncio.to_thread(dest.parent.mkdir, parents=True, exist_ok=True)

        # Stream into a partial file so an aborted export never looks like a clip
        partial = dest.with_name(dest.name + _PARTIAL_SUFFIX)
        fh = await asyncio.to_thread(partial.open, "wb")
        try:
            size = 0
            async for chunk in chunks:
                await asyncio.to_thread(fh.write, chunk)
                size += len(chunk)
        except BaseException:
            await asyncio.to_thread(fh.close)
            await asyncio.to_thread(partial.unlink, True)
            raise
        await asyncio.to_thread(fh.close)
        await asyncio.to_thread(partial.replace, dest)
        logger.debug("Wrote clip: path=%s bytes=%d", dest, size)
        return dest

    async def ping(self) -> bool:
        return self.root.exists() and self.root.is_dir()

    def _full_dest_path(self, dest_path: str) -> Path:
        cleaned = str(dest_path).lstrip("/")
        if not cleaned or "\\" in cleaned:
            raise ValueError(f"Invalid dest_path: {dest_path}")
        path = PurePosixPath(cleaned)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError(f"Invalid dest_path: {dest_path}")
        return self.root.joinpath(*path.parts)
