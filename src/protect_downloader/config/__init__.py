"""Configuration loading and validation."""

from protect_downloader.config.loader import (
    ConfigError,
    ConfigErrorCode,
    load_config,
    load_config_from_dict,
    load_config_from_env,
    resolve_env_var,
)

__all__ = [
    "ConfigError",
    "ConfigErrorCode",
    "load_config",
    "load_config_from_dict",
    "load_config_from_env",
    "resolve_env_var",
]
