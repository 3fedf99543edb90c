"""Mock implementations for testing."""

from tests.protect_downloader.mocks.clock import FakeClock
from tests.protect_downloader.mocks.downloader import MockDownloader
from tests.protect_downloader.mocks.exporter import MockExporter
from tests.protect_downloader.mocks.publisher import MockPublisher
from tests.protect_downloader.mocks.sink import MockClipSink
from tests.protect_downloader.mocks.websocket import FakeSocketFactory, FakeWebSocket

__all__ = [
    "FakeClock",
    "FakeSocketFactory",
    "FakeWebSocket",
    "MockClipSink",
    "MockDownloader",
    "MockExporter",
    "MockPublisher",
]
