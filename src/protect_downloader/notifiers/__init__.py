"""Motion event publishers."""

from protect_downloader.notifiers.mqtt import MQTTPublisher

__all__ = ["MQTTPublisher"]
