"""Motion clip downloads: retry queue, downloader and clip paths."""

from protect_downloader.downloads.downloader import ClipDownloader
from protect_downloader.downloads.paths import build_clip_path
from protect_downloader.downloads.queue import DownloadQueue

__all__ = ["ClipDownloader", "DownloadQueue", "build_clip_path"]
