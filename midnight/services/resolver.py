"""
来源解析链

按照配置的来源顺序，由第一个 matches() 为真的来源负责解析。
"""

from typing import Dict, Iterable, List, Optional

from loguru import logger

from midnight.exceptions import (
    ConfigValidationError,
    DuplicateArtifactError,
    UnresolvableIdentifierError,
)
from midnight.models import (
    ArtifactRequest,
    ResolvedArtifact,
    ServerContext,
    find_duplicates,
)
from midnight.sources.base import JarSource


class ResolverChain:
    """来源解析链"""

    def __init__(self, sources: Iterable[JarSource]):
        self._sources: Dict[str, JarSource] = {}
        for source in sources:
            if source.name in self._sources:
                raise ConfigValidationError(
                    f"来源名称重复: {source.name}", context={"source": source.name}
                )
            self._sources[source.name] = source

    def get_source(self, name: str) -> JarSource:
        try:
            return self._sources[name]
        except KeyError:
            raise ConfigValidationError(
                f"未知的来源: {name} (可用: {', '.join(self._sources)})",
                context={"source": name},
            )

    def validate_order(self, context: ServerContext) -> None:
        """确认来源顺序中的名称都已注册"""
        for name in context.source_order:
            self.get_source(name)

    def select(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> Optional[JarSource]:
        """按顺序返回第一个支持该请求的来源"""
        for name in context.source_order:
            source = self.get_source(name)
            if source.matches(identifier, version_expr, context):
                return source
        return None

    async def resolve(
        self, identifier: str, version_expr: str, context: ServerContext
    ) -> Optional[ResolvedArtifact]:
        """
        解析单个构件

        选中的来源解析失败时不会回退到后续来源。
        """
        logger.info(f"正在解析 {identifier}...")
        source = self.select(identifier, version_expr, context)
        if source is None:
            logger.warning(f"没有来源支持 {identifier} ({version_expr})")
            return None

        logger.debug(f"{identifier} 使用来源 {source.name}")
        result = await source.resolve(identifier, version_expr, context)
        if result is None:
            logger.warning(f"来源 {source.name} 无法解析 {identifier} ({version_expr})")
        return result

    async def resolve_all(
        self,
        requests: Iterable[ArtifactRequest],
        context: ServerContext,
        server: Optional[str] = None,
    ) -> Dict[str, ResolvedArtifact]:
        """
        批量解析

        Args:
            requests: 构件请求，标识符不能重复
            context: 解析上下文
            server: 服务器名称，仅用于错误信息

        Returns:
            标识符 -> 解析结果，保持请求顺序

        Raises:
            DuplicateArtifactError: 请求中存在重复标识符
            UnresolvableIdentifierError: 任意请求无法解析，列出全部失败的标识符
        """
        requests = list(requests)
        duplicates = find_duplicates((), (r.identifier for r in requests))
        if duplicates:
            raise DuplicateArtifactError(duplicates, server)
        self.validate_order(context)

        resolved: Dict[str, ResolvedArtifact] = {}
        failed: List[str] = []
        for request in requests:
            result = await self.resolve(
                request.identifier, request.version_expr, context
            )
            if result is None:
                failed.append(request.identifier)
            else:
                resolved[request.identifier] = result

        if failed:
            raise UnresolvableIdentifierError(failed, server)
        return resolved
