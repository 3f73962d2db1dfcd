"""
主协调器

把规格文件中的服务器转换为解析上下文，依次解析并下载每个服务器的 mods / plugins。
"""

import os
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlsplit

import aiohttp
from loguru import logger

from midnight.download import Downloadable, DownloadManager, DownloadTask
from midnight.exceptions import ConfigValidationError, DuplicateArtifactError
from midnight.models import (
    ArtifactRequest,
    MidnightSpec,
    ResolvedArtifact,
    ServerConfig,
    ServerContext,
    find_duplicates,
)
from midnight.services import (
    GithubClient,
    ModrinthClient,
    ResolverChain,
    create_session,
)
from midnight.services.api_client import GITHUB_ENDPOINT, MODRINTH_ENDPOINT
from midnight.sources import (
    DirectURLSource,
    GithubSource,
    LocalPathSource,
    ModrinthSource,
)


class MidnightOrchestrator:
    """Midnight 主协调器"""

    def __init__(
        self,
        spec: MidnightSpec,
        tokens: Optional[Mapping[str, str]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        modrinth_endpoint: str = MODRINTH_ENDPOINT,
        github_endpoint: str = GITHUB_ENDPOINT,
    ):
        self.spec = spec
        self.tokens = dict(tokens or {})
        self._session = session
        self._owned_session = session is None
        self.modrinth_endpoint = modrinth_endpoint
        self.github_endpoint = github_endpoint
        self._resolver: Optional[ResolverChain] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """共享的 aiohttp 会话"""
        if self._session is None or self._session.closed:
            self._session = create_session(timeout=self.spec.general.timeout)
            self._owned_session = True
        return self._session

    @property
    def resolver(self) -> ResolverChain:
        """来源解析链（首次使用时创建，需在事件循环中访问）"""
        if self._resolver is None:
            self._resolver = ResolverChain(
                [
                    ModrinthSource(ModrinthClient(self.session, self.modrinth_endpoint)),
                    GithubSource(GithubClient(self.session, self.github_endpoint)),
                    DirectURLSource(),
                    LocalPathSource(),
                ]
            )
        return self._resolver

    @property
    def credentials(self) -> Dict[str, str]:
        """下载时需要附带令牌的主机"""
        credentials = {}
        token = self.tokens.get("github")
        host = urlsplit(self.github_endpoint).hostname
        if token and host:
            credentials[host] = token
        return credentials

    def context_for(self, server: ServerConfig) -> ServerContext:
        """为服务器构建解析上下文"""
        return ServerContext(
            platform_type=server.type,
            game_version=server.minecraft_version,
            source_order=tuple(self.spec.general.jar_source_order),
            github_token=self.tokens.get("github"),
        )

    def _new_download_manager(self) -> DownloadManager:
        general = self.spec.general
        return DownloadManager(
            max_concurrent=general.max_concurrent,
            max_retries=general.max_retries,
            retry_delay=general.retry_delay,
        )

    @staticmethod
    def _progress_logger(display_name: str):
        """每 5% 输出一次进度，完成时输出一行成功日志"""
        last_percent = 0.0

        def on_progress(done: int, total: int):
            nonlocal last_percent
            if total <= 0 or done >= total:
                logger.success(f"已下载 {display_name}.jar")
                return
            percent = done / total * 100
            if percent - last_percent >= 5:
                logger.debug(f"[进度] {display_name}.jar: {percent:.1f}%")
                last_percent = percent

        return on_progress

    def build_tasks(
        self, resolved: Mapping[str, ResolvedArtifact], destination_dir: Path
    ) -> Dict[str, DownloadTask]:
        """标识符 -> 下载任务，目标文件为 {destination_dir}/{display_name}.jar"""
        tasks = {}
        for identifier, artifact in resolved.items():
            downloadable = Downloadable.of(
                artifact.location, self.session, self.credentials
            )
            tasks[identifier] = downloadable.to_task(
                destination_dir / f"{artifact.display_name}.jar",
                self._progress_logger(artifact.display_name),
                name=identifier,
            )
        return tasks

    async def fetch(
        self,
        requests: Iterable[ArtifactRequest],
        context: ServerContext,
        destination_dir: Path,
        server: Optional[str] = None,
    ) -> Dict[str, Path]:
        """
        解析并下载一批构件

        Returns:
            标识符 -> 下载后的文件路径

        Raises:
            UnresolvableIdentifierError: 有标识符无法解析（不会开始任何下载）
            DownloadBatchError: 有文件下载失败
        """
        resolved = await self.resolver.resolve_all(requests, context, server)
        if not resolved:
            logger.info("没有需要下载的文件")
            return {}

        tasks = self.build_tasks(resolved, Path(destination_dir))
        manager = self._new_download_manager()
        logger.info(
            f"开始下载 {len(tasks)} 个文件 ({manager.max_concurrent} 并发)..."
        )
        await manager.download_all(tasks.values())
        return {identifier: task.destination for identifier, task in tasks.items()}

    async def fetch_server(
        self,
        server: ServerConfig,
        requests: Optional[Iterable[ArtifactRequest]] = None,
    ) -> Dict[str, Path]:
        """下载服务器的 mods / plugins 到 {data_dir}/{mods|plugins}"""
        destination_dir = server.jar_dir
        if destination_dir is None:
            logger.info(f"服务器 {server.name} ({server.type.value}) 不使用 jar")
            return {}
        if requests is None:
            requests = ArtifactRequest.from_mapping(server.jars)

        logger.info(f"服务器 {server.name}:")
        return await self.fetch(
            requests, self.context_for(server), destination_dir, server.name
        )

    async def build(self) -> Dict[str, Dict[str, Path]]:
        """
        下载规格中所有服务器的 jar

        任意服务器解析或下载失败都会中止整个构建。
        """
        logger.info(f"检测到服务器: {', '.join(self.spec.servers)}")
        root = self.spec.root_server
        if root is not None:
            logger.info(f"根服务器: {root.name}")

        try:
            results = {}
            for name, server in self.spec.servers.items():
                results[name] = await self.fetch_server(server)
            logger.success("所有 jar 下载完成")
            return results
        finally:
            await self.close()

    async def add(
        self, server_name: str, requests: Iterable[ArtifactRequest]
    ) -> Dict[str, Path]:
        """
        向服务器添加新的构件并下载

        Raises:
            DuplicateArtifactError: 标识符已存在于服务器的 mods / plugins 中（不会发出网络请求）
        """
        server = self.spec.get_server(server_name)
        if server.jar_dir is None:
            raise ConfigValidationError(
                f"服务器 {server.name} ({server.type.value}) 不支持 mods / plugins",
                context={"server": server.name},
            )
        requests = list(requests)
        duplicates = find_duplicates(
            server.jars, (r.identifier for r in requests)
        )
        if duplicates:
            raise DuplicateArtifactError(duplicates, server.name)

        try:
            paths = await self.fetch_server(server, requests)
        finally:
            await self.close()

        table = "mods" if server.type.is_modded else "plugins"
        for request in requests:
            logger.info(
                f'请在 [server.{server.name}.{table}] 中添加: '
                f'"{request.identifier}" = "{request.version_expr}"'
            )
        return paths

    async def close(self):
        """关闭自行创建的会话，并丢弃绑定在该会话上的解析链"""
        self._resolver = None
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()


def relative_to_cwd(path: Path) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        return str(path)


def summarize(results: Mapping[str, Path]) -> List[str]:
    return [f"{identifier} -> {relative_to_cwd(path)}" for identifier, path in results.items()]
