"""In-memory stand-ins for aiohttp websocket connections."""

from __future__ import annotations

import asyncio

import aiohttp


class FakeWebSocket:
    """Mimics the parts of ``aiohttp.ClientWebSocketResponse`` the event stream uses.

    Tests push frames with ``feed_*``; ``receive()`` hands them out in order.
    """

    def __init__(self) -> None:
        self._inbox: asyncio.Queue[aiohttp.WSMessage] = asyncio.Queue()
        self.closed = False
        self.close_calls = 0
        self.pongs: list[bytes] = []

    def feed_binary(self, data: bytes) -> None:
        self._inbox.put_nowait(aiohttp.WSMessage(aiohttp.WSMsgType.BINARY, data, None))

    def feed_ping(self, data: bytes = b"") -> None:
        self._inbox.put_nowait(aiohttp.WSMessage(aiohttp.WSMsgType.PING, data, None))

    def feed_close(self) -> None:
        self._inbox.put_nowait(aiohttp.WSMessage(aiohttp.WSMsgType.CLOSED, None, None))

    async def receive(self) -> aiohttp.WSMessage:
        return await self._inbox.get()

    async def pong(self, data: bytes = b"") -> None:
        self.pongs.append(data)

    async def close(self) -> bool:
        self.close_calls += 1
        if self.closed:
            return False
        self.closed = True
        self.feed_close()
        return True

    def exception(self) -> BaseException | None:
        return None


class FakeSocketFactory:
    """Socket factory that fails a configurable number of times before connecting."""

    def __init__(self, *, failures: int = 0) -> None:
        self.failures = failures
        self.calls = 0
        self.call_times: list[float] = []
        self.sockets: list[FakeWebSocket] = []

    async def __call__(self) -> FakeWebSocket:
        self.calls += 1
        self.call_times.append(asyncio.get_running_loop().time())
        if self.calls <= self.failures:
            raise aiohttp.ClientConnectionError("Simulated connection refused")
        socket = FakeWebSocket()
        self.sockets.append(socket)
        return socket

    @property
    def latest(self) -> FakeWebSocket:
        return self.sockets[-1]
