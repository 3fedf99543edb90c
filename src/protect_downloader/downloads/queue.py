"""Sequential download queue with delayed retries."""

from __future__ import annotations

import asyncio
import logging

from protect_downloader.errors import DownloadError
from protect_downloader.interfaces import MotionDownloader
from protect_downloader.models.events import MotionEndEvent, QueuedDownload

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
RETRY_DELAY_S = 60.0


class DownloadQueue:
    """Downloads motion clips one at a time, in submission order.

    A failed attempt is resubmitted after ``retry_delay_s`` with one less retry;
    an event that runs out of retries is dropped. Only one export is in flight at
    any time, so the NVR never sees overlapping requests from this queue.
    """

    def __init__(
        self,
        downloader: MotionDownloader,
        *,
        max_retries: int = MAX_RETRIES,
        retry_delay_s: float = RETRY_DELAY_S,
    ) -> None:
        self._downloader = downloader
        self._max_retries = max_retries
        self._retry_delay_s = retry_delay_s

        self._queue: asyncio.Queue[QueuedDownload] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._retry_tasks: set[asyncio.Task[None]] = set()
        self._shutdown_called = False

    @property
    def pending(self) -> int:
        """Number of downloads waiting for the worker."""
        return self._queue.qsize()

    @property
    def scheduled_retries(self) -> int:
        """Number of failed downloads waiting for their retry delay."""
        return len(self._retry_tasks)

    async def start(self) -> None:
        """Start the worker that drains the queue."""
        if self._worker is not None:
            logger.warning("DownloadQueue already started")
            return
        self._shutdown_called = False
        self._worker = asyncio.create_task(self._run_worker())

    def queue_download(self, event: MotionEndEvent, retries_remaining: int | None = None) -> bool:
        """Append a download for a completed motion interval.

        Returns False when the event was dropped because its retries ran out.
        """
        retries = self._max_retries if retries_remaining is None else retries_remaining
        if retries <= 0:
            logger.warning(
                "Retries exhausted; dropping motion event for camera: %s, start: %d",
                event.camera,
                event.start,
            )
            return False
        if self._shutdown_called:
            logger.warning("DownloadQueue is shut down; dropping motion event: %s", event)
            return False

        logger.info("Queueing motion event: %s", event)
        self._queue.put_nowait(QueuedDownload(event=event, retries_remaining=retries))
        return True

    async def join(self) -> None:
        """Wait until every queued download has been attempted."""
        await self._queue.join()

    async def shutdown(self, timeout: float | None = None) -> None:
        """Stop the worker and cancel pending retries."""
        if self._shutdown_called:
            return
        self._shutdown_called = True

        for task in list(self._retry_tasks):
            task.cancel()
        if self._retry_tasks:
            await asyncio.wait(set(self._retry_tasks))

        worker = self._worker
        self._worker = None
        if worker is None:
            return
        worker.cancel()
        _, still_running = await asyncio.wait({worker}, timeout=timeout)
        if still_running:
            logger.warning("DownloadQueue worker did not stop within %ss", timeout)

        if not self._queue.empty():
            logger.warning("DownloadQueue shut down with %d pending downloads", self.pending)

    async def _run_worker(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                error = await self._attempt(item)
                if error is not None:
                    self._handle_failure(error)
            except Exception as exc:
                self._handle_failure(exc)
            finally:
                self._queue.task_done()

    async def _attempt(self, item: QueuedDownload) -> DownloadError | None:
        """Run one download attempt, returning the failure as a value."""
        try:
            await self._downloader.download(item.event)
        except Exception as exc:
            return DownloadError(item.event, item.retries_remaining, cause=exc)
        return None

    def _handle_failure(self, error: Exception) -> None:
        match error:
            case DownloadError() as download_err:
                logger.warning(
                    "Download attempt failed for event: %s, retries: %d",
                    download_err.event,
                    download_err.retries_remaining,
                    exc_info=download_err.cause,
                )
                if download_err.status is not None:
                    logger.warning(
                        "Error details - status: %s, data: %s",
                        download_err.status,
                        download_err.body,
                    )
                self._schedule_retry(download_err.event, download_err.retries_remaining - 1)
            case _:
                logger.error("Unexpected download queue error: %s", error, exc_info=error)

    def _schedule_retry(self, event: MotionEndEvent, retries_remaining: int) -> None:
        task = asyncio.create_task(self._retry_after_delay(event, retries_remaining))
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)

    async def _retry_after_delay(self, event: MotionEndEvent, retries_remaining: int) -> None:
        await asyncio.sleep(self._retry_delay_s)
        self.queue_download(event, retries_remaining)
