"""Live event feed: frame decoding, motion correlation and the websocket client."""

from protect_downloader.stream.correlator import MotionCorrelator
from protect_downloader.stream.decoder import decode_frame
from protect_downloader.stream.event_stream import EventStream

__all__ = ["EventStream", "MotionCorrelator", "decode_frame"]
