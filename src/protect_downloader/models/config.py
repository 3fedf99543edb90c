"""Configuration models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class NvrConfig(BaseModel):
    """NVR connection configuration.

    Credentials are referenced by env var name so the YAML file never holds secrets.
    """

    host: str
    username_env: str = "UNIFI_USER"
    password_env: str = "UNIFI_PASS"
    verify_ssl: bool = False
    request_timeout_s: float = Field(default=30.0, gt=0.0)
    request_retries: int = Field(default=5, ge=1)
    request_backoff_s: float = Field(default=1.0, ge=0.0)
    reauthentication_interval_s: float = Field(default=3600.0, gt=0.0)

    @field_validator("host", mode="before")
    @classmethod
    def _strip_scheme(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.removeprefix("https://").rstrip("/")
        return value


class CamerasConfig(BaseModel):
    """Which NVR cameras to follow (empty list means all)."""

    names: list[str] = Field(default_factory=list)

    @field_validator("names", mode="before")
    @classmethod
    def _split_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value


class MotionConfig(BaseModel):
    """Motion correlation settings."""

    prefer_smart_motion: bool = True
    smart_event_timeout_s: float = Field(default=600.0, gt=0.0)


class StreamConfig(BaseModel):
    """Live event feed settings."""

    heartbeat_interval_s: float = Field(default=20.0, gt=0.0)
    reconnect_delay_s: float = Field(default=5.0, gt=0.0)


class DownloadConfig(BaseModel):
    """Download queue and clip destination settings."""

    path: str = "/downloads"
    max_retries: int = Field(default=5, ge=1)
    retry_delay_s: float = Field(default=60.0, ge=0.0)


class MQTTAuthConfig(BaseModel):
    """MQTT auth configuration using env var names."""

    username_env: str | None = None
    password_env: str | None = None


class MQTTConfig(BaseModel):
    """MQTT publisher configuration."""

    host: str
    port: int = 1883
    auth: MQTTAuthConfig | None = None
    topic_prefix: str = "unifi/protect-downloader"
    qos: int = Field(default=1, ge=0, le=2)
    retain: bool = True
    connection_timeout: float = 10.0

    @model_validator(mode="before")
    @classmethod
    def _parse_url(cls, data: object) -> object:
        # Accept mqtt://host:port as the host value
        if not isinstance(data, dict):
            return data
        host = data.get("host")
        if not isinstance(host, str) or "://" not in host:
            return data
        updated = dict(data)
        address = host.split("://", 1)[1].rstrip("/")
        if ":" in address:
            address, port = address.rsplit(":", 1)
            updated.setdefault("port", int(port))
        updated["host"] = address
        return updated

    @field_validator("topic_prefix")
    @classmethod
    def _strip_topic_prefix(cls, value: str) -> str:
        cleaned = value.strip().strip("/")
        if not cleaned:
            raise ValueError("mqtt.topic_prefix must not be empty")
        return cleaned


class Config(BaseModel):
    """Main configuration."""

    version: int = 1
    nvr: NvrConfig
    cameras: CamerasConfig = Field(default_factory=CamerasConfig)
    motion: MotionConfig = Field(default_factory=MotionConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    mqtt: MQTTConfig | None = None
