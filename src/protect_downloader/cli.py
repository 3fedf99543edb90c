"""CLI entrypoint for the protect-downloader service."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]

from protect_downloader.app import Application
from protect_downloader.config import ConfigError, load_config, load_config_from_env
from protect_downloader.logging_setup import configure_logging
from protect_downloader.models.config import Config


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for CLI."""
    configure_logging(log_level=level)


def _load(config: str | None) -> Config:
    if config:
        return load_config(Path(config))
    return load_config_from_env()


class ProtectDownloader:
    """Downloads UniFi Protect motion clips and relays motion over MQTT."""

    def run(self, config: str | None = None, log_level: str = "INFO") -> None:
        """Run the downloader until interrupted.

        Args:
            config: Path to YAML config file; environment variables are used when omitted
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        setup_logging(log_level)

        try:
            cfg = _load(config)
            app = Application(cfg)
            asyncio.run(app.run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)
        except KeyboardInterrupt:
            pass  # Handled by signal handlers

    def validate(self, config: str | None = None) -> None:
        """Validate configuration without running.

        Args:
            config: Path to YAML config file; environment variables are used when omitted
        """
        try:
            cfg = _load(config)
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)

        print(f"✓ Config valid: {config or 'environment'}")
        print(f"  NVR host: {cfg.nvr.host}")
        print(f"  Cameras: {cfg.cameras.names or 'all'}")
        print(f"  Download path: {cfg.download.path}")
        print(f"  Prefer smart motion: {cfg.motion.prefer_smart_motion}")
        print(f"  MQTT: {cfg.mqtt.host if cfg.mqtt else 'disabled'}")


def main() -> None:
    """Main CLI entrypoint."""
    # Strip --help/-h when it's the only arg so Fire shows its commands list
    if len(sys.argv) == 2 and sys.argv[1] in ("--help", "-h"):
        sys.argv.pop()
    fire.Fire(ProtectDownloader)


if __name__ == "__main__":
    main()
