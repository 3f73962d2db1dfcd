"""
下载管理器

有界并发的工作池：单个任务失败不会影响其他任务，全部结束后统一报告失败的目标文件。
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List

from loguru import logger

from midnight.download.queue import (
    DownloadQueue,
    DownloadTask,
    find_duplicate_destinations,
)
from midnight.exceptions import (
    DownloadBatchError,
    DownloadCancelledError,
    DownloadError,
    DownloadFileError,
)


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    bytes_downloaded: int = 0


class DownloadManager:
    """下载管理器"""

    def __init__(
        self,
        max_concurrent: int = 5,
        max_retries: int = 2,
        retry_delay: float = 1.0,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent 必须大于 0")
        self.max_concurrent = max_concurrent
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.queue = DownloadQueue()
        self.stats = DownloadStats()
        self._cancel_event = asyncio.Event()
        self._workers: list[asyncio.Task] = []
        self._failures: Dict[str, Exception] = {}

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self):
        """取消：正在进行的下载会在下一个数据块边界停止，排队中的任务不会开始"""
        logger.warning("[取消] 正在取消下载...")
        self._cancel_event.set()

    async def enqueue(self, task: DownloadTask) -> None:
        """添加下载任务，目标路径重复时抛出 DownloadFileError"""
        if not await self.queue.put(task):
            raise DownloadFileError(
                f"目标文件重复: {task.destination}",
                context={"destination": str(task.destination)},
            )
        self.stats.total += 1
        logger.debug(f"[队列] '{task.label}' 已加入下载队列")

    def _track_progress(self, task: DownloadTask):
        """包装任务的进度回调，累计已下载字节数"""
        last = 0

        def on_progress(done: int, total: int):
            nonlocal last
            self.stats.bytes_downloaded += max(done - last, 0)
            last = done
            if task.on_progress is not None:
                task.on_progress(done, total)

        return on_progress

    async def download_task(self, task: DownloadTask) -> Path:
        """
        执行单个任务（带重试）

        Raises:
            DownloadError: 重试耗尽或被取消
        """
        for attempt in range(self.max_retries + 1):
            if self.cancelled:
                raise DownloadCancelledError(f"下载已取消: {task.label}")
            try:
                path = await task.source.download(
                    task.destination, self._track_progress(task), self._cancel_event
                )
                self.stats.completed += 1
                logger.debug(f"[完成] '{task.label}' -> {path}")
                return path
            except DownloadCancelledError:
                raise
            except Exception as e:
                if attempt < self.max_retries and not self.cancelled:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"[重试] 下载 '{task.label}' 失败 (第 {attempt + 1} 次): {e}. "
                        f"{delay:.1f}s 后重试..."
                    )
                    await asyncio.sleep(delay)
                    continue
                if isinstance(e, DownloadError):
                    raise
                raise DownloadError(
                    f"下载失败: {task.label}: {e}",
                    context={"destination": str(task.destination)},
                ) from e

        # 循环总会返回或抛出
        raise AssertionError("unreachable")

    async def _worker(self):
        """下载工作协程"""
        while True:
            task = await self.queue.get()
            try:
                await self.download_task(task)
            except Exception as e:
                self.stats.failed += 1
                self._failures[str(task.destination)] = e
                logger.error(f"[错误] 下载 '{task.label}' 最终失败: {e}")
            finally:
                self.queue.task_done()

    async def start(self):
        """启动工作协程"""
        logger.debug(f"[启动] 下载器启动，最大并发数: {self.max_concurrent}")
        self._workers = [
            asyncio.create_task(self._worker(), name=f"downloader-{i}")
            for i in range(self.max_concurrent)
        ]

    async def wait_until_complete(self):
        await self.queue.join()

    async def stop(self):
        """停止工作协程"""
        for worker in self._workers:
            worker.cancel()
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
            self._workers.clear()

    async def download_all(self, tasks: Iterable[DownloadTask]) -> List[Path]:
        """
        并发执行一批任务并等待全部结束

        Returns:
            各任务的目标路径（与输入顺序一致）

        Raises:
            DownloadFileError: 目标路径重复（任何下载开始前）
            DownloadBatchError: 有任务失败，列出全部失败的目标文件
        """
        tasks = list(tasks)
        duplicates = find_duplicate_destinations(tasks)
        if duplicates:
            raise DownloadFileError(
                f"目标文件重复: {', '.join(str(t.destination) for t in duplicates)}",
                context={"destinations": [str(t.destination) for t in duplicates]},
            )
        for task in tasks:
            await self.enqueue(task)

        await self.start()
        try:
            await self.wait_until_complete()
        finally:
            await self.stop()

        logger.info(
            f"下载完成: {self.stats.completed} 成功, {self.stats.failed} 失败"
        )
        failures = {
            str(t.destination): self._failures[str(t.destination)]
            for t in tasks
            if str(t.destination) in self._failures
        }
        if failures:
            raise DownloadBatchError(failures)
        return [task.destination for task in tasks]

    def get_failed(self) -> list[str]:
        """获取失败的目标文件列表"""
        return list(self._failures)
