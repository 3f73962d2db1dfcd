"""
可下载对象

远程 (HTTP) 与本地 (文件复制) 两种实现，统一提供 download() 与 get_size_bytes()。
"""

import asyncio
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

import aiohttp
import aiofiles
from loguru import logger

from midnight.exceptions import (
    DownloadCancelledError,
    DownloadError,
    DownloadFileError,
    DownloadNetworkError,
)

ProgressCallback = Callable[[int, int], None]
PathLike = Union[str, os.PathLike]

CHUNK_SIZE = 8192


def _noop_progress(done: int, total: int) -> None:
    pass


class Downloadable(ABC):
    """某个位置上的字节流"""

    @abstractmethod
    async def download(
        self,
        destination: PathLike,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Path:
        """下载到 destination，返回最终路径"""
        pass

    @abstractmethod
    async def get_size_bytes(self) -> int:
        pass

    def to_task(
        self,
        destination: PathLike,
        on_progress: Optional[ProgressCallback] = None,
        name: str = "",
    ):
        from midnight.download.queue import DownloadTask

        return DownloadTask(Path(destination), self, on_progress, name)

    @staticmethod
    def of(
        location: str,
        session: Optional[aiohttp.ClientSession] = None,
        credentials: Optional[Mapping[str, str]] = None,
    ) -> "Downloadable":
        """
        根据地址的 scheme 创建对应的可下载对象

        Args:
            location: http(s) URL 或 file:// URI
            session: 远程下载使用的共享会话
            credentials: 主机名 -> Bearer 令牌
        """
        scheme = urlsplit(location).scheme.lower()
        if scheme == "file":
            return LocalDownloadable(file_uri_to_path(location))
        if scheme in ("http", "https"):
            if session is None:
                raise DownloadError(
                    "远程下载需要 aiohttp 会话", context={"location": location}
                )
            return RemoteDownloadable(location, session, credentials)
        raise DownloadError(
            f"不支持的下载地址: {location}", context={"location": location}
        )


def file_uri_to_path(uri: str) -> Path:
    parts = urlsplit(uri)
    path = url2pathname(parts.path)
    if parts.netloc and parts.netloc != "localhost":
        path = f"//{parts.netloc}{path}"
    return Path(path)


class RemoteDownloadable(Downloadable):
    """HTTP 下载"""

    def __init__(
        self,
        url: str,
        session: aiohttp.ClientSession,
        credentials: Optional[Mapping[str, str]] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.url = url
        self.session = session
        self.credentials: Dict[str, str] = dict(credentials or {})
        self.chunk_size = chunk_size

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/octet-stream"}
        host = urlsplit(self.url).hostname
        token = self.credentials.get(host) if host else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _check_response(self, response: aiohttp.ClientResponse) -> int:
        """检查状态码与 Content-Length，返回文件大小"""
        if not 200 <= response.status < 300:
            raise DownloadNetworkError(
                f"HTTP {response.status}: {self.url}",
                context={"url": self.url, "status": response.status},
            )
        if response.content_length is None:
            raise DownloadNetworkError(
                f"服务器未返回 Content-Length: {self.url}",
                context={"url": self.url},
            )
        return response.content_length

    async def download(
        self,
        destination: PathLike,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Path:
        destination = Path(destination)
        on_progress = on_progress or _noop_progress
        destination.parent.mkdir(parents=True, exist_ok=True)

        # 临时文件与目标在同一目录，保证 os.replace 是原子操作
        fd, temp_path = tempfile.mkstemp(
            prefix="downloadable-", suffix=".midnight", dir=destination.parent
        )
        os.close(fd)
        logger.debug(f"{self.url} -> {temp_path}")

        try:
            async with self.session.get(self.url, headers=self._headers()) as response:
                total = self._check_response(response)
                downloaded = 0
                async with aiofiles.open(temp_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        if cancel_event is not None and cancel_event.is_set():
                            raise DownloadCancelledError(
                                f"下载已取消: {destination.name}",
                                context={"url": self.url},
                            )
                        await f.write(chunk)
                        downloaded += len(chunk)
                        on_progress(downloaded, total)

                if downloaded < total:
                    raise DownloadNetworkError(
                        f"下载不完整: {downloaded}/{total} 字节",
                        context={"url": self.url},
                    )
                if downloaded == 0:
                    on_progress(0, total)

            os.replace(temp_path, destination)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadNetworkError(
                f"下载失败: {self.url}: {e}", context={"url": self.url}
            ) from e
        except OSError as e:
            raise DownloadFileError(
                f"写入文件失败: {destination}: {e}",
                context={"destination": str(destination)},
            ) from e
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)

        return destination

    async def get_size_bytes(self) -> int:
        """读取响应头后立即关闭连接"""
        try:
            async with self.session.get(self.url, headers=self._headers()) as response:
                size = self._check_response(response)
                response.close()
                return size
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadNetworkError(
                f"获取文件大小失败: {self.url}: {e}", context={"url": self.url}
            ) from e

    def __repr__(self) -> str:
        return f"RemoteDownloadable({self.url!r})"


class LocalDownloadable(Downloadable):
    """本地文件复制"""

    def __init__(self, path: PathLike):
        self.path = Path(path)

    async def download(
        self,
        destination: PathLike,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Path:
        destination = Path(destination)
        on_progress = on_progress or _noop_progress
        if cancel_event is not None and cancel_event.is_set():
            raise DownloadCancelledError(f"下载已取消: {destination.name}")

        try:
            size = self.path.stat().st_size
            destination.parent.mkdir(parents=True, exist_ok=True)
            if not (destination.exists() and self.path.samefile(destination)):
                shutil.copy2(self.path, destination)
        except OSError as e:
            raise DownloadFileError(
                f"复制文件失败: {self.path}: {e}",
                context={"source": str(self.path), "destination": str(destination)},
            ) from e

        on_progress(size, size)
        return destination

    async def get_size_bytes(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError as e:
            raise DownloadFileError(
                f"无法读取文件: {self.path}: {e}", context={"source": str(self.path)}
            ) from e

    def __repr__(self) -> str:
        return f"LocalDownloadable({str(self.path)!r})"
