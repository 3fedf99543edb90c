"""Loads the downloader configuration from a YAML file or the process environment."""

from __future__ import annotations

import os
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import ValidationError

from protect_downloader.config.env import EnvSettings
from protect_downloader.models.config import Config

T = TypeVar("T")


class ConfigErrorCode(str, Enum):
    """Reason a configuration could not be used to start the downloader."""

    FILE_NOT_FOUND = "CONFIG_FILE_NOT_FOUND"
    YAML_INVALID = "CONFIG_YAML_INVALID"
    EMPTY_FILE = "CONFIG_EMPTY_FILE"
    ROOT_NOT_MAPPING = "CONFIG_ROOT_NOT_MAPPING"
    VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    ENV_VAR_MISSING = "CONFIG_ENV_VAR_MISSING"
    # None of the configured camera names exist on the NVR
    CAMERAS_NOT_FOUND = "CONFIG_CAMERAS_NOT_FOUND"
    UNKNOWN = "CONFIG_UNKNOWN"


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(
        self,
        message: str,
        *,
        code: ConfigErrorCode = ConfigErrorCode.UNKNOWN,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.path = path
        self.__cause__ = cause


def load_config(path: Path) -> Config:
    """Load the NVR, camera, download and MQTT settings from a YAML file.

    Raises:
        ConfigError: If the file is missing, not a YAML mapping, or fails validation
    """
    raw = _read_yaml_mapping(path)
    return _validated(lambda: Config.model_validate(raw), path=path)


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Validate an already-parsed configuration mapping."""
    return _validated(lambda: Config.model_validate(data))


def load_config_from_env() -> Config:
    """Build configuration from UNIFI_*/CAMERAS/DOWNLOAD_PATH/MQTT_* variables.

    Raises:
        ConfigError: If UNIFI_HOST, UNIFI_USER or UNIFI_PASS is unset, or a value is invalid
    """
    settings = _validated(EnvSettings)
    if settings.missing:
        raise ConfigError(
            f"Unable to initialize; missing required configuration: {', '.join(settings.missing)}",
            code=ConfigErrorCode.ENV_VAR_MISSING,
        )
    return _validated(settings.to_config)


def resolve_env_var(env_var_name: str, required: bool = True) -> str | None:
    """Read a secret (NVR or MQTT credentials) from the variable named in the config.

    Raises:
        ConfigError: If required and not set
    """
    value = os.environ.get(env_var_name)
    if value is None and required:
        raise ConfigError(
            f"Required environment variable not set: {env_var_name}",
            code=ConfigErrorCode.ENV_VAR_MISSING,
        )
    return value


def format_validation_error(e: ValidationError, path: Path | None = None) -> str:
    """Render each failing field as ``section -> field: message``."""
    prefix = f"Config validation failed ({path}):" if path else "Config validation failed:"
    lines = [f"  {' -> '.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()]
    return prefix + "\n" + "\n".join(lines)


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}",
            code=ConfigErrorCode.FILE_NOT_FOUND,
            path=path,
        )

    try:
        with path.open() as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}: {e}",
            code=ConfigErrorCode.YAML_INVALID,
            path=path,
            cause=e,
        ) from e

    if raw is None:
        raise ConfigError(
            f"Config file is empty: {path}", code=ConfigErrorCode.EMPTY_FILE, path=path
        )
    if not isinstance(raw, dict):
        raise ConfigError(
            f"Config must be a YAML mapping, got {type(raw).__name__}",
            code=ConfigErrorCode.ROOT_NOT_MAPPING,
            path=path,
        )
    return raw


def _validated(build: Callable[[], T], *, path: Path | None = None) -> T:
    try:
        return build()
    except ValidationError as e:
        raise ConfigError(
            format_validation_error(e, path),
            code=ConfigErrorCode.VALIDATION_FAILED,
            path=path,
            cause=e,
        ) from e
