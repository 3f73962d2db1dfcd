"""
Midnight 下载层

包含可下载对象、任务队列与并发下载管理。
"""

from midnight.download.downloadable import (
    Downloadable,
    RemoteDownloadable,
    LocalDownloadable,
)
from midnight.download.queue import DownloadQueue, DownloadTask
from midnight.download.manager import DownloadManager, DownloadStats

__all__ = [
    "Downloadable",
    "RemoteDownloadable",
    "LocalDownloadable",
    "DownloadQueue",
    "DownloadTask",
    "DownloadManager",
    "DownloadStats",
]
