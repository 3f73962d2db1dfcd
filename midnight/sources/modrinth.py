"""
Modrinth 来源

按平台类型与游戏版本查询项目版本列表，选择 primary 文件。
"""

import asyncio
from typing import List, Optional

import aiohttp
from loguru import logger

from midnight.exceptions import APIError
from midnight.models import ResolvedArtifact, ServerContext, VersionInfo
from midnight.services.api_client import ModrinthClient
from midnight.sources.base import JarSource
from midnight.sources.patterns import LATEST, MODRINTH_SLUG


class ModrinthSource(JarSource):
    """Modrinth 搜索来源"""

    name = "modrinth"

    def __init__(self, client: ModrinthClient):
        self.client = client

    def matches(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> bool:
        return MODRINTH_SLUG.fullmatch(identifier) is not None

    @staticmethod
    def select_version(
        versions: List[VersionInfo], version_expr: str
    ) -> Optional[VersionInfo]:
        """
        选择版本

        "*" 取 date_published 最新的版本（日期相同或缺失时保持 API 顺序），
        否则取 version_number 完全相等的第一个版本。
        """
        if version_expr == LATEST:
            newest_first = sorted(
                versions, key=lambda v: v.date_published or "", reverse=True
            )
            return newest_first[0] if newest_first else None
        for version in versions:
            if version.version_number == version_expr:
                return version
        return None

    async def resolve(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> Optional[ResolvedArtifact]:
        try:
            versions = await self.client.get_project_versions(
                identifier, context.platform_type.value, context.game_version
            )
        except (
            APIError,
            aiohttp.ClientError,
            asyncio.TimeoutError,
            AttributeError,
            KeyError,
            TypeError,
            ValueError,
        ) as e:
            logger.warning(f"[modrinth] 查询 {identifier} 失败: {e}")
            return None

        if not versions:
            logger.debug(f"[modrinth] {identifier} 没有兼容的版本")
            return None

        version = self.select_version(versions, version_expr)
        if version is None:
            logger.debug(f"[modrinth] {identifier} 找不到版本 {version_expr}")
            return None

        file = version.primary_file
        if file is None:
            logger.debug(f"[modrinth] {identifier} {version.version_number} 没有文件")
            return None

        logger.debug(
            f"[modrinth] {identifier} -> {version.version_number} ({file.url})"
        )
        return ResolvedArtifact(identifier, file.url)
