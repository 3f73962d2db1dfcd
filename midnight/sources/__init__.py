"""
Midnight 构件来源

每个来源负责把 (标识符, 版本表达式) 解析为具体的下载地址。
"""

from midnight.sources.base import JarSource
from midnight.sources.modrinth import ModrinthSource
from midnight.sources.github import GithubSource
from midnight.sources.direct import DirectURLSource
from midnight.sources.local import LocalPathSource

__all__ = [
    "JarSource",
    "ModrinthSource",
    "GithubSource",
    "DirectURLSource",
    "LocalPathSource",
]
