"""
直链来源

版本表达式本身就是下载地址，标识符作为文件名。
"""

from typing import Optional
from urllib.parse import urlparse

from midnight.models import ResolvedArtifact, ServerContext
from midnight.sources.base import JarSource

SUPPORTED_SCHEMES = ("http", "https", "file")


def is_absolute_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if parsed.scheme not in SUPPORTED_SCHEMES:
        return False
    if parsed.scheme == "file":
        return bool(parsed.path)
    return bool(parsed.netloc)


class DirectURLSource(JarSource):
    """直链来源"""

    name = "direct"

    def matches(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> bool:
        return is_absolute_url(version_expr)

    async def resolve(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> Optional[ResolvedArtifact]:
        return ResolvedArtifact(identifier, version_expr)
