"""Persistent connection to the NVR's real-time update feed."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import aiohttp

from protect_downloader.errors import ProtectDownloaderError
from protect_downloader.models.enums import ConnectionState

logger = logging.getLogger(__name__)

# Feed is considered dead after this long without a message or ping
HEARTBEAT_INTERVAL_S = 20.0

# Delay between reconnect attempts
RECONNECT_DELAY_S = 5.0

Subscriber = Callable[[bytes], None]
SocketFactory = Callable[[], Awaitable[aiohttp.ClientWebSocketResponse]]

_CONNECT_ERRORS = (aiohttp.ClientError, OSError, asyncio.TimeoutError, ProtectDownloaderError)


class EventStream:
    """Manages one websocket connection to the NVR event feed at a time.

    Fans raw binary messages out to subscribers, terminates the socket when the
    feed goes silent for longer than the heartbeat interval, and reconnects on a
    fixed cadence until ``disconnect()`` is called.
    """

    def __init__(
        self,
        socket_factory: SocketFactory,
        *,
        heartbeat_interval_s: float = HEARTBEAT_INTERVAL_S,
        reconnect_delay_s: float = RECONNECT_DELAY_S,
    ) -> None:
        self._socket_factory = socket_factory
        self._heartbeat_interval_s = heartbeat_interval_s
        self._reconnect_delay_s = reconnect_delay_s

        self._state = ConnectionState.DISCONNECTED
        self._should_reconnect = False
        self._subscribers: dict[Subscriber, None] = {}

        self._socket: aiohttp.ClientWebSocketResponse | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._heartbeat_handle: asyncio.TimerHandle | None = None
        self._close_tasks: dict[aiohttp.ClientWebSocketResponse, asyncio.Task[bool]] = {}

    @property
    def connected(self) -> bool:
        return self._state == ConnectionState.OPEN

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def should_reconnect(self) -> bool:
        return self._should_reconnect

    @property
    def subscribers(self) -> tuple[Subscriber, ...]:
        return tuple(self._subscribers)

    async def connect(self) -> bool:
        """Open the feed connection.

        Returns True when the socket is open (or already open/connecting), False when
        the attempt failed. A failed attempt schedules the reconnect loop.
        """
        self._should_reconnect = True
        opened = await self._open()
        if not opened and self._should_reconnect:
            self._schedule_reconnect(immediate=False)
        return opened

    def add_subscriber(self, subscriber: Subscriber) -> None:
        """Register a callback receiving every raw feed message."""
        logger.info("Adding event subscriber")
        self._subscribers[subscriber] = None

    def clear_subscribers(self) -> None:
        """Remove all subscribers without touching the connection."""
        self._subscribers.clear()

    async def disconnect(self) -> None:
        """Close the connection and stop any further reconnect attempts."""
        self._should_reconnect = False

        reconnect_task = self._reconnect_task
        if reconnect_task is not None and reconnect_task is not asyncio.current_task():
            reconnect_task.cancel()
            await asyncio.wait({reconnect_task})

        reader_task = self._reader_task
        self._terminate()
        if reader_task is not None and reader_task is not asyncio.current_task():
            # Outcome is reported by _log_reader_exception
            await asyncio.wait({reader_task})

        # A reader cancelled before its first step never reaches _on_close
        self._reader_task = None
        self._socket = None
        self._cancel_heartbeat()

        if self._close_tasks:
            await asyncio.gather(*self._close_tasks.values(), return_exceptions=True)

        self._state = ConnectionState.TERMINATED

    async def _open(self) -> bool:
        if self._state in (ConnectionState.OPEN, ConnectionState.CONNECTING):
            return True

        self._state = ConnectionState.CONNECTING
        logger.debug("Connecting to event stream")
        try:
            socket = await self._socket_factory()
        except _CONNECT_ERRORS as exc:
            logger.error("Event stream connection failed: %s", exc)
            if self._state == ConnectionState.CONNECTING:
                self._state = ConnectionState.DISCONNECTED
            return False

        if not self._should_reconnect:
            # disconnect() was called while the handshake was in flight
            self._close_in_background(socket)
            self._state = ConnectionState.TERMINATED
            return False

        self._socket = socket
        self._on_open()
        self._reader_task = asyncio.create_task(self._read_loop(socket))
        self._reader_task.add_done_callback(self._log_reader_exception)
        return True

    def _on_open(self) -> None:
        logger.info("Connected to NVR websocket server for event updates")
        self._state = ConnectionState.OPEN
        self._heartbeat()

    async def _read_loop(self, socket: aiohttp.ClientWebSocketResponse) -> None:
        try:
            while True:
                try:
                    message = await socket.receive()
                except (aiohttp.ClientError, OSError) as exc:
                    logger.error("Websocket connection error: %s", exc)
                    return

                match message.type:
                    case aiohttp.WSMsgType.BINARY:
                        self._on_message(message.data)
                    case aiohttp.WSMsgType.TEXT:
                        self._on_message(message.data.encode("utf-8"))
                    case aiohttp.WSMsgType.PING:
                        self._heartbeat()
                        await socket.pong(message.data)
                    case aiohttp.WSMsgType.PONG:
                        self._heartbeat()
                    case aiohttp.WSMsgType.ERROR:
                        logger.error("Websocket connection error: %s", socket.exception())
                        return
                    case _:
                        return
        finally:
            self._on_close(socket)

    def _on_message(self, data: bytes) -> None:
        self._heartbeat()
        for subscriber in list(self._subscribers):
            subscriber(data)

    def _on_close(self, socket: aiohttp.ClientWebSocketResponse) -> None:
        logger.info("WebSocket connection closed")
        self._cancel_heartbeat()
        if self._socket is socket:
            self._socket = None
        self._reader_task = None
        self._close_in_background(socket)

        if not self._should_reconnect:
            self._state = ConnectionState.TERMINATED
            return
        self._state = ConnectionState.DISCONNECTED
        self._schedule_reconnect(immediate=True)

    def _heartbeat(self) -> None:
        self._cancel_heartbeat()
        loop = asyncio.get_running_loop()
        self._heartbeat_handle = loop.call_later(
            self._heartbeat_interval_s, self._on_heartbeat_timeout
        )

    def _cancel_heartbeat(self) -> None:
        if self._heartbeat_handle is not None:
            self._heartbeat_handle.cancel()
            self._heartbeat_handle = None

    def _on_heartbeat_timeout(self) -> None:
        self._heartbeat_handle = None
        logger.warning(
            "No event stream traffic for %.0fs; terminating connection",
            self._heartbeat_interval_s,
        )
        self._terminate()

    def _terminate(self) -> None:
        """Drop the connection immediately without waiting for a close handshake."""
        if self._socket is not None:
            self._close_in_background(self._socket)
        if self._reader_task is not None and not self._reader_task.done():
            self._reader_task.cancel()

    def _close_in_background(self, socket: aiohttp.ClientWebSocketResponse) -> None:
        if socket.closed or socket in self._close_tasks:
            return
        task = asyncio.create_task(socket.close())
        self._close_tasks[socket] = task
        task.add_done_callback(lambda _: self._close_tasks.pop(socket, None))

    def _schedule_reconnect(self, *, immediate: bool) -> None:
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.create_task(self._reconnect_loop(immediate=immediate))

    async def _reconnect_loop(self, *, immediate: bool) -> None:
        try:
            if not immediate:
                await asyncio.sleep(self._reconnect_delay_s)
            while self._should_reconnect and not self.connected:
                logger.info("Attempting to reconnect to event stream")
                if await self._open():
                    return
                await asyncio.sleep(self._reconnect_delay_s)
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None

    def _log_reader_exception(self, task: asyncio.Task[None]) -> None:
        try:
            exc = task.exception()
        except asyncio.CancelledError:
            return
        if exc is not None:
            logger.error("Event stream reader failed: %s", exc, exc_info=exc)
