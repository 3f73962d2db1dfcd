"""
API 客户端

Modrinth 与 GitHub 的 HTTP 客户端。会话由调用方注入，以便共享连接池并在测试中替换后端。
"""

import json
from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger

from midnight import __version__
from midnight.exceptions import APIError
from midnight.models import AssetInfo, ReleaseInfo, VersionInfo


MODRINTH_ENDPOINT = "https://api.modrinth.com"
MODRINTH_API_VERSION = "v2"
GITHUB_ENDPOINT = "https://api.github.com"

USER_AGENT = f"dipix-empire/midnight/{__version__}"


def create_session(
    timeout: float = 3600.0, connect_timeout: float = 60.0
) -> aiohttp.ClientSession:
    """创建共享的 aiohttp 会话（带 User-Agent 与超时）"""
    return aiohttp.ClientSession(
        headers={"User-Agent": USER_AGENT},
        timeout=aiohttp.ClientTimeout(total=timeout, connect=connect_timeout),
    )


class BaseClient:
    """使用调用方注入的 aiohttp 会话的客户端基类"""

    def __init__(self, session: aiohttp.ClientSession):
        self.session = session

    async def _request(
        self,
        url: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Optional[Any]:
        """
        发送 GET 请求并解析 JSON

        404 返回 None，其他非 200 状态抛出 APIError。
        """
        logger.debug(f"GET {url} {params or ''}")
        async with self.session.get(url, params=params, headers=headers) as response:
            if response.status == 200:
                return await response.json(content_type=None)
            elif response.status == 404:
                return None
            else:
                raise APIError.from_response(
                    f"API 请求失败 (状态码: {response.status})", response
                )


class ModrinthClient(BaseClient):
    """Modrinth API 客户端"""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        endpoint: str = MODRINTH_ENDPOINT,
    ):
        super().__init__(session)
        self.endpoint = endpoint.rstrip("/")

    def api_url(self, path: str) -> str:
        return f"{self.endpoint}/{MODRINTH_API_VERSION}{path}"

    async def get_project_versions(
        self,
        idx: str,
        loader: str,
        game_version: Optional[str] = None,
    ) -> List[VersionInfo]:
        """
        获取项目的版本列表

        Args:
            idx: 项目 slug 或 ID
            loader: 加载器 / 平台类型
            game_version: Minecraft 版本，代理服务器为 None

        Returns:
            按 API 返回顺序排列的版本列表，项目不存在时为空列表
        """
        params = {"loaders": json.dumps([loader])}
        if game_version:
            params["game_versions"] = json.dumps([game_version])

        response = await self._request(
            self.api_url(f"/project/{idx}/version"), params
        )
        if not response:
            return []
        if not isinstance(response, list):
            raise ValueError(f"Modrinth 返回了意外的数据: {type(response).__name__}")
        return [VersionInfo.from_modrinth(version) for version in response]


class GithubClient(BaseClient):
    """GitHub Releases API 客户端"""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        endpoint: str = GITHUB_ENDPOINT,
    ):
        super().__init__(session)
        self.endpoint = endpoint.rstrip("/")

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def get_release(
        self,
        owner: str,
        repo: str,
        tag: Optional[str] = None,
        token: Optional[str] = None,
    ) -> Optional[ReleaseInfo]:
        """获取指定 tag 的发布；tag 为 None 时获取最新发布"""
        if tag is None:
            path = f"/repos/{owner}/{repo}/releases/latest"
        else:
            path = f"/repos/{owner}/{repo}/releases/tags/{tag}"
        response = await self._request(
            f"{self.endpoint}{path}", headers=self._headers(token)
        )
        if response is None:
            return None
        if not isinstance(response, dict):
            raise ValueError(f"GitHub 返回了意外的发布数据: {type(response).__name__}")
        return ReleaseInfo.from_github(response)

    async def get_assets(
        self, release: ReleaseInfo, token: Optional[str] = None
    ) -> List[AssetInfo]:
        """获取发布的资产列表"""
        response = await self._request(
            release.assets_url, headers=self._headers(token)
        )
        if not response:
            return []
        if not isinstance(response, list):
            raise ValueError(f"GitHub 返回了意外的资产数据: {type(response).__name__}")
        return [AssetInfo.from_github(asset) for asset in response]
