"""MQTT publisher for motion events and service availability."""

from __future__ import annotations

import asyncio
import logging
import os
import threading

import paho.mqtt.client as mqtt

from protect_downloader.interfaces import MotionPublisher
from protect_downloader.models.config import MQTTConfig
from protect_downloader.models.events import CameraRef, MotionEvent, MotionNotification

logger = logging.getLogger(__name__)

ONLINE = "online"
OFFLINE = "offline"


class MQTTPublisher(MotionPublisher):
    """Publishes motion events to ``{topic_prefix}/{camera_id}/motion``.

    Availability is reported on ``{topic_prefix}/availability``: "online" once
    connected, "offline" via the broker's last will.
    """

    def __init__(self, config: MQTTConfig) -> None:
        self.host = config.host
        self.port = int(config.port)
        self.topic_prefix = config.topic_prefix
        self.qos = int(config.qos)
        self.retain = bool(config.retain)
        self.connection_timeout = float(config.connection_timeout)

        # Get credentials from env if provided
        self.username: str | None = None
        self.password: str | None = None

        if config.auth and config.auth.username_env:
            username_var = config.auth.username_env
            self.username = os.getenv(username_var)
            if not self.username:
                logger.warning("MQTT username not found in env: %s", username_var)

        if config.auth and config.auth.password_env:
            password_var = config.auth.password_env
            self.password = os.getenv(password_var)
            if not self.password:
                logger.warning("MQTT password not found in env: %s", password_var)

        self.client = mqtt.Client()

        if self.username and self.password:
            self.client.username_pw_set(self.username, self.password)
        self.client.will_set(self.availability_topic, OFFLINE, qos=1, retain=True)

        # Connection state
        self._connected = False
        self._connected_event = threading.Event()
        self._shutdown_called = False
        self._loop_started = False

        def _on_connect(
            client: mqtt.Client, userdata: object, flags: dict[str, object], rc: int
        ) -> None:
            if rc == 0:
                self._connected = True
                self._connected_event.set()
                logger.info("Connected to MQTT broker: %s:%d", self.host, self.port)
                client.publish(self.availability_topic, ONLINE, qos=1, retain=True)
                return
            self._connected = False
            logger.warning("MQTT connection failed: rc=%s", rc)

        def _on_disconnect(client: mqtt.Client, userdata: object, rc: int) -> None:
            self._connected = False
            self._connected_event.clear()
            if rc != 0:
                logger.warning("MQTT disconnected unexpectedly: rc=%s", rc)

        self.client.on_connect = _on_connect
        self.client.on_disconnect = _on_disconnect

        # Connect to broker; paho's network loop keeps reconnecting in the background
        try:
            self.client.connect(self.host, self.port, keepalive=60)
            self.client.loop_start()
            self._loop_started = True
        except Exception as e:
            logger.error("Failed to connect to MQTT broker: %s", e, exc_info=True)
            self._connected = False

    @property
    def availability_topic(self) -> str:
        return f"{self.topic_prefix}/availability"

    def motion_topic(self, camera_id: str) -> str:
        return f"{self.topic_prefix}/{camera_id}/motion"

    async def publish_motion(self, event: MotionEvent, camera: CameraRef) -> None:
        """Publish a motion start or end event for a camera."""
        await self._ensure_connected()

        topic = self.motion_topic(camera.id)
        payload = MotionNotification.from_event(event, camera).model_dump_json(exclude_none=True)

        await asyncio.to_thread(self._publish, topic, payload, self.qos, self.retain)

        logger.debug("Published motion event to MQTT: topic=%s", topic)

    def _publish(self, topic: str, payload: str, qos: int, retain: bool) -> None:
        """Publish message (blocking operation)."""
        result = self.client.publish(topic, payload, qos=qos, retain=retain)
        result.wait_for_publish()

    async def ping(self) -> bool:
        """Health check - verify MQTT connection."""
        if self._shutdown_called:
            return False
        if self._connected and self.client.is_connected():
            return True
        await asyncio.to_thread(self._connected_event.wait, 2.0)
        return self._connected and self.client.is_connected()

    async def shutdown(self, timeout: float | None = None) -> None:
        """Cleanup resources - report offline and disconnect from broker."""
        _ = timeout
        if self._shutdown_called:
            return

        self._shutdown_called = True
        logger.info("Shutting down MQTTPublisher...")

        # A clean disconnect suppresses the last will, so report offline explicitly
        if self._connected:
            self.client.publish(self.availability_topic, OFFLINE, qos=1, retain=True)

        # Stop loop if it was started (prevents thread leak even if never connected)
        if self._loop_started:
            await asyncio.to_thread(self.client.loop_stop)
            await asyncio.to_thread(self.client.disconnect)

        logger.info("MQTTPublisher shutdown complete")

    async def _ensure_connected(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Publisher has been shut down")
        if self._connected:
            return
        # Wait for connection with timeout
        connected = await asyncio.to_thread(self._connected_event.wait, self.connection_timeout)
        if not connected or not self._connected:
            raise RuntimeError(
                f"MQTT broker not connected after {self.connection_timeout}s timeout"
            )
