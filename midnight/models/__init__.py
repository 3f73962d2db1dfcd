"""
Midnight 数据模型包

包含配置模型和 API 模型定义。
"""

from midnight.models.config import (
    DEFAULT_SOURCE_ORDER,
    PlatformType,
    ArtifactRequest,
    ServerContext,
    GeneralConfig,
    ServerConfig,
    MidnightSpec,
    find_duplicates,
)
from midnight.models.api import (
    ResolvedArtifact,
    FileInfo,
    VersionInfo,
    AssetInfo,
    ReleaseInfo,
)

__all__ = [
    # 配置模型
    "DEFAULT_SOURCE_ORDER",
    "PlatformType",
    "ArtifactRequest",
    "ServerContext",
    "GeneralConfig",
    "ServerConfig",
    "MidnightSpec",
    "find_duplicates",
    # API 模型
    "ResolvedArtifact",
    "FileInfo",
    "VersionInfo",
    "AssetInfo",
    "ReleaseInfo",
]
