"""UniFi Protect motion clip downloader."""

__version__ = "0.1.0"

# Export commonly used types
from protect_downloader.errors import ProtectDownloaderError
from protect_downloader.models.events import MotionEndEvent, MotionEvent, MotionStartEvent
from protect_downloader.models.nvr import CameraDetails

__all__ = [
    "CameraDetails",
    "MotionEndEvent",
    "MotionEvent",
    "MotionStartEvent",
    "ProtectDownloaderError",
    "__version__",
]
