"""NVR API client."""

from protect_downloader.nvr.client import NvrClient

__all__ = ["NvrClient"]
