"""
构件来源基类
"""

from abc import ABC, abstractmethod
from typing import Optional

from midnight.models import ResolvedArtifact, ServerContext


class JarSource(ABC):
    """
    构件来源

    matches() 只做语法 / 文件存在性判断，不产生网络请求；
    只有被解析链选中的来源才会执行 resolve()。
    """

    name: str = ""

    @abstractmethod
    def matches(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> bool:
        """该来源是否支持这个标识符 / 版本表达式"""
        pass

    @abstractmethod
    async def resolve(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> Optional[ResolvedArtifact]:
        """
        解析下载地址

        Returns:
            ResolvedArtifact，无法解析（不存在、网络错误等）时返回 None
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name!r}>"
