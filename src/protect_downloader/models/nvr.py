"""NVR bootstrap models (camera directory)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FeatureFlags(BaseModel):
    """Camera capabilities relevant to motion filtering."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    has_smart_detect: bool = Field(default=False, alias="hasSmartDetect")


class CameraDetails(BaseModel):
    """Camera as listed by the NVR bootstrap."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    feature_flags: FeatureFlags = Field(default_factory=FeatureFlags, alias="featureFlags")


class NvrDetails(BaseModel):
    """NVR identity reported by the bootstrap."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    mac: str | None = None
    host: str | None = None
    version: str | None = None
    firmware_version: str | None = Field(default=None, alias="firmwareVersion")
    uptime: int | None = None
    last_seen: int | None = Field(default=None, alias="lastSeen")
    type: str | None = None


class Bootstrap(BaseModel):
    """Response of the NVR bootstrap call."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    cameras: list[CameraDetails] = Field(default_factory=list)
    last_update_id: str = Field(alias="lastUpdateId")
    nvr: NvrDetails | None = None
