"""
Midnight 服务层

包含 API 客户端与来源解析链。
"""

from midnight.services.api_client import (
    ModrinthClient,
    GithubClient,
    create_session,
)
from midnight.services.resolver import ResolverChain

__all__ = [
    "ModrinthClient",
    "GithubClient",
    "create_session",
    "ResolverChain",
]
