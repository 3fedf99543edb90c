"""Error hierarchy for the motion-to-download pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from protect_downloader.models.events import MotionEndEvent


class ProtectDownloaderError(Exception):
    """Base exception for all protect-downloader errors.

    Compatible with error-as-value pattern: instances can be returned as values
    instead of raised. Preserves stack traces via exception chaining.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause  # Python's exception chaining


class DecodeError(ProtectDownloaderError):
    """A raw event-stream frame could not be decoded."""

    def __init__(self, stage: str, cause: Exception | None = None) -> None:
        super().__init__(f"Unable to decode {stage} packet", cause=cause)
        self.stage = stage


class NvrError(ProtectDownloaderError):
    """NVR API call failed."""


class AuthenticationError(NvrError):
    """Login to the NVR failed or returned no session details."""


class NvrRequestError(NvrError):
    """NVR answered with an error status."""

    def __init__(self, path: str, status: int, body: str = "") -> None:
        super().__init__(f"NVR request failed: {path} returned HTTP {status}")
        self.path = path
        self.status = status
        self.body = body


class DownloadError(ProtectDownloaderError):
    """Video export for a motion event failed."""

    def __init__(
        self, event: MotionEndEvent, retries_remaining: int, cause: Exception
    ) -> None:
        super().__init__(
            f"Download failed for camera {event.camera} ({event.start}-{event.end})",
            cause=cause,
        )
        self.event = event
        self.retries_remaining = retries_remaining
        self.status: int | None = None
        self.body: str | None = None
        if isinstance(cause, NvrRequestError):
            self.status = cause.status
            self.body = cause.body
