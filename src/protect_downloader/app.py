"""Main application that wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal

from protect_downloader.config import ConfigError, ConfigErrorCode, resolve_env_var
from protect_downloader.controller import MotionController, select_cameras
from protect_downloader.downloads import ClipDownloader, DownloadQueue
from protect_downloader.models.config import Config
from protect_downloader.notifiers import MQTTPublisher
from protect_downloader.nvr import NvrClient
from protect_downloader.storage import LocalClipSink
from protect_downloader.stream import EventStream, MotionCorrelator

logger = logging.getLogger(__name__)


class Application:
    """Main application that orchestrates all components.

    Handles component creation, lifecycle, and graceful shutdown.
    """

    def __init__(self, config: Config) -> None:
        self._config = config

        # Components (created in _create_components)
        self._nvr: NvrClient | None = None
        self._publisher: MQTTPublisher | None = None
        self._download_queue: DownloadQueue | None = None
        self._controller: MotionController | None = None
        self._event_stream: EventStream | None = None

        # Shutdown state
        self._shutdown_event = asyncio.Event()
        self._shutdown_started = False
        self._shutdown_complete = False

    @property
    def event_stream(self) -> EventStream:
        if self._event_stream is None:
            raise RuntimeError("Event stream not initialized")
        return self._event_stream

    @property
    def download_queue(self) -> DownloadQueue:
        if self._download_queue is None:
            raise RuntimeError("Download queue not initialized")
        return self._download_queue

    async def run(self) -> None:
        """Run until SIGINT/SIGTERM, then shut down gracefully."""
        logger.info("Starting protect-downloader...")
        try:
            await self.start()
        except BaseException:
            await self.shutdown()
            raise

        self._setup_signal_handlers()
        logger.info("Application started. Waiting for motion events...")

        await self._shutdown_event.wait()
        await self.shutdown()

    async def start(self) -> None:
        """Create components, start the download worker and connect the feed."""
        await self._create_components()
        assert self._download_queue is not None
        assert self._controller is not None
        assert self._event_stream is not None

        await self._download_queue.start()
        self._event_stream.add_subscriber(self._controller.on_message)
        if not await self._event_stream.connect():
            logger.warning(
                "Initial event stream connection failed; retrying every %ss",
                self._config.stream.reconnect_delay_s,
            )

    def request_shutdown(self) -> None:
        self._shutdown_started = True
        self._shutdown_event.set()

    async def _create_components(self) -> None:
        """Create all components based on config."""
        config = self._config

        username = resolve_env_var(config.nvr.username_env)
        password = resolve_env_var(config.nvr.password_env)
        assert username is not None and password is not None
        self._nvr = NvrClient(config.nvr, username=username, password=password)

        bootstrap = await self._nvr.get_bootstrap()
        logger.info(
            "Found cameras: %s",
            [f"{camera.id} : {camera.name}" for camera in bootstrap.cameras],
        )

        cameras = select_cameras(bootstrap.cameras, config.cameras.names)
        if not cameras:
            raise ConfigError(
                f"Unable to find references to target cameras: {config.cameras.names}",
                code=ConfigErrorCode.CAMERAS_NOT_FOUND,
            )
        logger.info(
            "Setting up motion event subscription for cameras: %s",
            [camera.name for camera in cameras],
        )

        if config.mqtt is not None:
            self._publisher = MQTTPublisher(config.mqtt)

        downloader = ClipDownloader(self._nvr, LocalClipSink(config.download.path))
        self._download_queue = DownloadQueue(
            downloader,
            max_retries=config.download.max_retries,
            retry_delay_s=config.download.retry_delay_s,
        )
        self._controller = MotionController(
            MotionCorrelator(smart_event_timeout_s=config.motion.smart_event_timeout_s),
            self._download_queue,
            cameras,
            prefer_smart_motion=config.motion.prefer_smart_motion,
            publisher=self._publisher,
        )
        self._event_stream = EventStream(
            self._nvr.open_event_socket,
            heartbeat_interval_s=config.stream.heartbeat_interval_s,
            reconnect_delay_s=config.stream.reconnect_delay_s,
        )

        logger.info("All components created")

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        if self._shutdown_started:
            logger.warning("Shutdown already in progress, ignoring signal")
            return

        logger.info("Received signal %s, initiating shutdown...", sig.name)
        self.request_shutdown()

    async def shutdown(self) -> None:
        """Graceful shutdown of all components."""
        if self._shutdown_complete:
            return
        self._shutdown_complete = True
        logger.info("Shutting down application...")

        # Stop the feed first so no new downloads are queued.
        if self._event_stream:
            await self._event_stream.disconnect()
            self._event_stream.clear_subscribers()

        if self._download_queue:
            await self._download_queue.shutdown(timeout=5.0)

        if self._controller:
            await self._controller.drain()

        if self._publisher:
            await self._publisher.shutdown()

        if self._nvr:
            await self._nvr.shutdown()

        logger.info("Application shutdown complete")
