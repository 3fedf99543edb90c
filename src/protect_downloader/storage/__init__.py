"""Clip sinks."""

from protect_downloader.storage.local import LocalClipSink

__all__ = ["LocalClipSink"]
