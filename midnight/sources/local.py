"""
本地文件来源
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from midnight.models import ResolvedArtifact, ServerContext
from midnight.sources.base import JarSource


class LocalPathSource(JarSource):
    """版本表达式为本地已存在的路径"""

    name = "local"

    def matches(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> bool:
        if not version_expr:
            return False
        try:
            return Path(version_expr).exists()
        except (OSError, ValueError):
            return False

    async def resolve(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> Optional[ResolvedArtifact]:
        path = Path(version_expr).resolve()
        logger.warning(
            f"{identifier} 使用本地文件 ({path})。本地文件会破坏最小配置原则，"
            f"建议改用远程来源。"
        )
        return ResolvedArtifact(identifier, path.as_uri())
