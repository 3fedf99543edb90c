"""Helpers for building clip destination paths."""

from __future__ import annotations

from datetime import datetime
from pathlib import PurePosixPath

CLIP_SUFFIX = ".mp4"


def _sanitize_segment(value: str) -> str:
    cleaned = value.strip().replace("/", "_").replace("\\", "_")
    cleaned = "_".join(part for part in cleaned.split() if part)
    if cleaned in (".", ".."):
        return "unknown"
    return cleaned or "unknown"


def _normalize_dest_path(path: PurePosixPath) -> str:
    if path.is_absolute():
        raise ValueError(f"dest_path must be relative, got {path}")
    for part in path.parts:
        if part in ("", ".", ".."):
            raise ValueError(f"dest_path contains invalid segment: {path}")
    return str(path)


def build_clip_path(camera_name: str, timestamp_ms: int) -> str:
    """Build the relative path for a clip starting at ``timestamp_ms`` (local time).

    Layout: ``{camera}/{YYYY}/{MM}/{DD}/{YYYY-MM-DD}_{HH.MM.SS}_{timestamp}.mp4``
    """
    started = datetime.fromtimestamp(timestamp_ms / 1000)
    camera = _sanitize_segment(camera_name)
    filename = f"{started:%Y-%m-%d}_{started:%H.%M.%S}_{timestamp_ms}{CLIP_SUFFIX}"
    path = PurePosixPath(camera) / f"{started:%Y}" / f"{started:%m}" / f"{started:%d}" / filename
    return _normalize_dest_path(path)
