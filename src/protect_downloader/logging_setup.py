from __future__ import annotations

import json
import logging
import logging.config
import os

_CURRENT_CAMERA_NAME = "-"

# Attributes every LogRecord carries; anything else arrived through extra=
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName", "camera_name"}

_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")

_DEFAULT_CONSOLE_FORMAT = (
    "%(asctime)s %(levelname)s [%(camera_name)s] %(module)s:%(lineno)d %(message)s"
)


class _CameraNameFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "camera_name", None) in (None, ""):
            record.camera_name = _CURRENT_CAMERA_NAME
        return True


class _JsonExtraFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if not extras:
            return base
        return f"{base}\n{json.dumps(extras, indent=2, default=str, sort_keys=True)}"


def set_camera_name(name: str | None) -> None:
    """Set the `camera_name` shown for records logged without one."""
    global _CURRENT_CAMERA_NAME
    _CURRENT_CAMERA_NAME = name or "-"


def configure_logging(*, log_level: str = "INFO", camera_name: str | None = None) -> None:
    """Send logs to stdout tagged with the camera they concern.

    Download and motion logs pass `camera_name` via `extra=`; other fields passed
    that way are rendered as JSON below the message. `CONSOLE_LOG_FORMAT` overrides
    the line format.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "camera_name": {"()": "protect_downloader.logging_setup._CameraNameFilter"}
            },
            "formatters": {
                "default": {
                    "()": "protect_downloader.logging_setup._JsonExtraFormatter",
                    "format": os.getenv("CONSOLE_LOG_FORMAT", _DEFAULT_CONSOLE_FORMAT),
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": str(log_level).upper(),
                    "formatter": "default",
                    "filters": ["camera_name"],
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": "DEBUG", "handlers": ["console"]},
        }
    )

    set_camera_name(camera_name)
    logging.captureWarnings(True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
