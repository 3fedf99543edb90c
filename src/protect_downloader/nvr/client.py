"""HTTP client for the NVR: session auth, camera directory and video export."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

import aiohttp
from pydantic import ValidationError

from protect_downloader.clock import Clock, SystemClock
from protect_downloader.errors import AuthenticationError, NvrError, NvrRequestError
from protect_downloader.interfaces import Shutdownable, VideoExporter
from protect_downloader.models.config import NvrConfig
from protect_downloader.models.nvr import Bootstrap, CameraDetails

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/auth/login"
BOOTSTRAP_PATH = "/proxy/protect/api/bootstrap"
EXPORT_PATH = "/proxy/protect/api/video/export"
UPDATES_PATH = "/proxy/protect/ws/updates"

CSRF_HEADER = "X-CSRF-Token"
_CHUNK_SIZE = 64 * 1024


class NvrClient(VideoExporter, Shutdownable):
    """Talks to the NVR's HTTP API on behalf of the stream and the downloader.

    The session (cookie + CSRF token) is shared by every caller and refreshed
    lazily once ``reauthentication_interval_s`` has elapsed.
    """

    def __init__(
        self,
        config: NvrConfig,
        *,
        username: str,
        password: str,
        clock: Clock | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._host = config.host
        self._username = username
        self._password = password
        self._ssl = bool(config.verify_ssl)
        self._request_timeout = aiohttp.ClientTimeout(total=config.request_timeout_s)
        self._connect_timeout_s = config.request_timeout_s
        self._max_attempts = max(1, int(config.request_retries))
        self._backoff_s = max(0.0, float(config.request_backoff_s))
        self._reauth_interval_s = config.reauthentication_interval_s
        self._clock = clock or SystemClock()

        self._session = session
        self._owns_session = session is None
        self._headers: dict[str, str] | None = None
        self._login_expiry = 0.0
        self._bootstrap: Bootstrap | None = None
        self._shutdown_called = False

    @property
    def host(self) -> str:
        return self._host

    @property
    def auth_headers(self) -> dict[str, str] | None:
        return dict(self._headers) if self._headers else None

    @property
    def bootstrap(self) -> Bootstrap | None:
        return self._bootstrap

    @property
    def last_update_id(self) -> str | None:
        return self._bootstrap.last_update_id if self._bootstrap else None

    async def authenticate(self) -> bool:
        """Ensure a valid session, reusing the cached one until it expires."""
        self._ensure_open()
        now = self._clock.now()
        if self._headers and now < self._login_expiry:
            logger.debug("Using cached authentication")
            return True

        logger.info("Requesting new authentication...")

        # The index page hands out a CSRF token that the login call requires
        status, headers, _ = await self._get("/")
        index_token = headers.get(CSRF_HEADER)
        if status != 200 or not index_token:
            logger.warning("Unable to get initial CSRF token: status=%s", status)
            return False

        session = await self._get_session()
        async with session.post(
            self._url(LOGIN_PATH),
            json={"username": self._username, "password": self._password},
            headers={CSRF_HEADER: index_token},
            ssl=self._ssl,
            timeout=self._request_timeout,
        ) as response:
            if response.status >= 400:
                details = await response.text()
                raise AuthenticationError(f"NVR login failed: HTTP {response.status}: {details}")
            csrf_token = response.headers.get(CSRF_HEADER)
            cookie = _cookie_header(response.headers.getall("Set-Cookie", []))

        if not csrf_token or not cookie:
            logger.warning("Unable to fetch auth details from login response")
            return False

        self._headers = {
            "Content-Type": "application/json",
            "Cookie": cookie,
            CSRF_HEADER: csrf_token,
        }
        self._login_expiry = now + self._reauth_interval_s
        return True

    async def get_bootstrap(self) -> Bootstrap:
        """Fetch and store the camera directory and the feed's last update id."""
        if not await self.authenticate():
            raise AuthenticationError(
                "Unable to get bootstrap details; failed fetching auth headers"
            )

        status, _, body = await self._get(BOOTSTRAP_PATH, headers=self._headers)
        if status != 200:
            raise NvrRequestError(BOOTSTRAP_PATH, status, body)

        try:
            bootstrap = Bootstrap.model_validate(json.loads(body))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise NvrError("Malformed bootstrap response", cause=exc) from exc

        self._bootstrap = bootstrap
        return bootstrap

    def get_cameras(self) -> list[CameraDetails]:
        """Return all cameras from the last bootstrap."""
        return list(self._bootstrap.cameras) if self._bootstrap else []

    def get_camera(self, camera_id: str) -> CameraDetails | None:
        for camera in self.get_cameras():
            if camera.id == camera_id:
                return camera
        return None

    def event_stream_url(self) -> str:
        return f"wss://{self._host}{UPDATES_PATH}?lastUpdateId={self.last_update_id or ''}"

    async def open_event_socket(self) -> aiohttp.ClientWebSocketResponse:
        """Open the websocket for the real-time update feed."""
        if not await self.authenticate() or self._headers is None:
            raise AuthenticationError("Unable to subscribe to events; failed fetching auth headers")

        session = await self._get_session()
        url = self.event_stream_url()
        logger.debug("Connecting to ws server url: %s", url)
        # Pings are handled by the event stream so they count towards its heartbeat
        return await session.ws_connect(
            url,
            headers={"Cookie": self._headers["Cookie"]},
            ssl=self._ssl,
            autoping=False,
        )

    async def export_video(
        self, camera_id: str, start: int, end: int, filename: str
    ) -> AsyncIterator[bytes]:
        if not await self.authenticate():
            raise AuthenticationError("Unable to download video; failed fetching auth headers")

        params = {
            "start": str(start),
            "end": str(end),
            "camera": camera_id,
            "filename": filename,
            "channel": "0",
        }
        session = await self._get_session()
        async with session.get(
            self._url(EXPORT_PATH),
            headers=self._headers,
            params=params,
            ssl=self._ssl,
        ) as response:
            if response.status >= 400:
                details = await response.text()
                raise NvrRequestError(EXPORT_PATH, response.status, details)
            async for chunk in response.content.iter_chunked(_CHUNK_SIZE):
                yield chunk

    async def shutdown(self, timeout: float | None = None) -> None:
        """Cleanup resources - close HTTP session."""
        _ = timeout
        if self._shutdown_called:
            return
        self._shutdown_called = True

        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def _get(
        self, path: str, *, headers: Mapping[str, str] | None = None
    ) -> tuple[int, Mapping[str, str], str]:
        """GET with retries on transport errors and 5xx responses."""
        attempt = 0
        while True:
            attempt += 1
            try:
                session = await self._get_session()
                async with session.get(
                    self._url(path),
                    headers=headers,
                    ssl=self._ssl,
                    timeout=self._request_timeout,
                ) as response:
                    body = await response.text()
                    if response.status < 500 or attempt >= self._max_attempts:
                        return response.status, response.headers, body
                    logger.warning(
                        "NVR request failed: path=%s status=%s attempt=%d/%d",
                        path,
                        response.status,
                        attempt,
                        self._max_attempts,
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                if attempt >= self._max_attempts:
                    raise
                logger.warning(
                    "NVR request failed: path=%s attempt=%d/%d error=%s",
                    path,
                    attempt,
                    self._max_attempts,
                    exc,
                )
            await asyncio.sleep(self._backoff_s * (2 ** (attempt - 1)))

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=None, connect=self._connect_timeout_s)
            # Cookies travel in explicit headers; the jar would reject IP-address hosts anyway
            self._session = aiohttp.ClientSession(
                timeout=timeout, cookie_jar=aiohttp.DummyCookieJar()
            )
            self._owns_session = True
        return self._session

    def _url(self, path: str) -> str:
        return f"https://{self._host}{path}"

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("NvrClient has been shut down")


def _cookie_header(set_cookie_values: list[Any]) -> str:
    """Collapse Set-Cookie response headers into a Cookie request header."""
    pairs = [str(value).split(";", 1)[0].strip() for value in set_cookie_values]
    return "; ".join(pair for pair in pairs if pair)
