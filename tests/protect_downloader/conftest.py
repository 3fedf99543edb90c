"""Shared pytest fixtures for protect-downloader tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest

from protect_downloader.models.config import Config, DownloadConfig, NvrConfig
from protect_downloader.models.events import MotionEndEvent
from protect_downloader.models.nvr import CameraDetails, FeatureFlags
from tests.protect_downloader.frames import BASIC_CAMERA_ID, SMART_CAMERA_ID
from tests.protect_downloader.mocks import FakeClock


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(start=1000.0)


@pytest.fixture
def basic_camera() -> CameraDetails:
    return CameraDetails(id=BASIC_CAMERA_ID, name="Driveway")


@pytest.fixture
def smart_camera() -> CameraDetails:
    return CameraDetails(
        id=SMART_CAMERA_ID,
        name="Front Door",
        feature_flags=FeatureFlags(has_smart_detect=True),
    )


@pytest.fixture
def end_event() -> MotionEndEvent:
    return MotionEndEvent(camera=BASIC_CAMERA_ID, start=1613419508476, end=1613419516715)


@pytest.fixture
def base_config(tmp_path: Path) -> Config:
    return Config(
        nvr=NvrConfig(host="nvr.local"),
        download=DownloadConfig(path=str(tmp_path / "clips")),
    )
