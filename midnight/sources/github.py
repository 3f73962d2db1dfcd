"""
GitHub Releases 来源

标识符形如 owner/repo，版本表达式为 tag、"*"（最新发布）或 tag/资产文件名。
"""

import asyncio
from typing import List, Optional, Tuple

import aiohttp
from loguru import logger

from midnight.exceptions import APIError
from midnight.models import AssetInfo, ResolvedArtifact, ServerContext
from midnight.services.api_client import GithubClient
from midnight.sources.base import JarSource
from midnight.sources.patterns import (
    GITHUB_MOD_NAME,
    GITHUB_REPO,
    GITHUB_TAG_AND_FILE,
    GITHUB_USER,
    JAR_ASSET,
    LATEST,
)


def split_repository(identifier: str) -> Optional[Tuple[str, str]]:
    match = GITHUB_MOD_NAME.fullmatch(identifier)
    if match is None:
        return None
    return match.group("user"), match.group("repo")


def split_version(version_expr: str) -> Tuple[str, Optional[str]]:
    """拆分为 (tag, 资产文件名)"""
    match = GITHUB_TAG_AND_FILE.fullmatch(version_expr)
    # 该正则总能匹配
    assert match is not None
    return match.group("tag"), match.group("file")


def select_asset(assets: List[AssetInfo], asset_file: Optional[str]) -> Optional[AssetInfo]:
    for asset in assets:
        if asset_file is None:
            if JAR_ASSET.search(asset.name):
                return asset
        elif asset.name == asset_file:
            return asset
    return None


class GithubSource(JarSource):
    """GitHub 发布来源"""

    name = "github"

    def __init__(self, client: GithubClient):
        self.client = client

    def matches(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> bool:
        parts = split_repository(identifier)
        if parts is None:
            return False
        user, repo = parts
        return (
            GITHUB_USER.fullmatch(user) is not None
            and GITHUB_REPO.fullmatch(repo) is not None
        )

    async def resolve(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> Optional[ResolvedArtifact]:
        parts = split_repository(identifier)
        if parts is None:
            return None
        owner, repo = parts
        tag, asset_file = split_version(version_expr)

        try:
            release = await self.client.get_release(
                owner,
                repo,
                None if tag == LATEST else tag,
                token=context.github_token,
            )
            if release is None:
                logger.debug(f"[github] {identifier} 不存在发布 {tag}")
                return None
            assets = await self.client.get_assets(
                release, token=context.github_token
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
            logger.warning(f"[github] 查询 {identifier} 失败: {e}")
            return None

        asset = select_asset(assets, asset_file)
        if asset is None:
            wanted = asset_file or "*.jar"
            logger.debug(f"[github] {identifier}@{tag} 中没有资产 {wanted}")
            return None

        logger.debug(f"[github] {identifier}@{release.tag_name or tag} -> {asset.name}")
        return ResolvedArtifact(repo, asset.url)
