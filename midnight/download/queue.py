"""
下载任务队列

每个任务拥有独立的目标路径，队列按目标路径去重。
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from midnight.download.downloadable import Downloadable, ProgressCallback


@dataclass
class DownloadTask:
    """下载任务"""

    destination: Path
    source: "Downloadable"
    on_progress: Optional["ProgressCallback"] = None
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or self.destination.name

    @property
    def key(self) -> Path:
        return self.destination.expanduser().resolve()


def find_duplicate_destinations(tasks: Iterable[DownloadTask]) -> List[DownloadTask]:
    """返回目标路径与之前任务重复的任务"""
    seen: set[Path] = set()
    duplicates = []
    for task in tasks:
        if task.key in seen:
            duplicates.append(task)
        seen.add(task.key)
    return duplicates


class DownloadQueue:
    """下载队列"""

    def __init__(self):
        self._queue: "asyncio.Queue[DownloadTask]" = asyncio.Queue()
        self._destinations: set[Path] = set()

    async def put(self, task: DownloadTask) -> bool:
        """
        添加任务到队列

        Returns:
            True 如果任务是新添加的，False 如果目标路径已被占用
        """
        if task.key in self._destinations:
            return False

        self._destinations.add(task.key)
        await self._queue.put(task)
        return True

    async def get(self) -> DownloadTask:
        """获取下一个任务"""
        return await self._queue.get()

    def task_done(self):
        """标记任务完成"""
        self._queue.task_done()

    async def join(self):
        """等待所有任务完成"""
        await self._queue.join()
