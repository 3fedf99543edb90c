"""Environment-variable configuration (container deployments without a YAML file)."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from protect_downloader.models.config import (
    CamerasConfig,
    Config,
    DownloadConfig,
    MotionConfig,
    MQTTConfig,
    NvrConfig,
)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    unifi_host: str | None = None
    unifi_user: str | None = None
    unifi_pass: str | None = None
    cameras: str = ""
    download_path: str = "/downloads"
    prefer_smart_motion: bool = True
    mqtt_host: str | None = None
    mqtt_port: int | None = None

    @field_validator("cameras", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def missing(self) -> list[str]:
        required = {
            "UNIFI_HOST": self.unifi_host,
            "UNIFI_USER": self.unifi_user,
            "UNIFI_PASS": self.unifi_pass,
        }
        return [name for name, value in required.items() if not value]

    def to_config(self) -> Config:
        mqtt: MQTTConfig | None = None
        if self.mqtt_host:
            mqtt_data: dict[str, object] = {"host": self.mqtt_host}
            if self.mqtt_port is not None:
                mqtt_data["port"] = self.mqtt_port
            mqtt = MQTTConfig.model_validate(mqtt_data)

        return Config(
            nvr=NvrConfig(host=self.unifi_host or ""),
            cameras=CamerasConfig.model_validate({"names": self.cameras}),
            motion=MotionConfig(prefer_smart_motion=self.prefer_smart_motion),
            download=DownloadConfig(path=self.download_path),
            mqtt=mqtt,
        )
