"""
Midnight 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Iterable, Optional
import aiohttp


class MidnightError(Exception):
    """Midnight 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(MidnightError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class APIError(MidnightError):
    """API 相关错误"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[aiohttp.ClientResponse] = None,
    ):
        super().__init__(message, code, context)
        self.response = response
        if response is not None:
            self.context["status_code"] = response.status
            self.context["url"] = str(response.url)

    def _get_default_code(self) -> str:
        return "E200"

    @classmethod
    def from_response(
        cls, message: str, response: aiohttp.ClientResponse
    ) -> "APIError":
        """按状态码选择具体的 API 异常类型"""
        if response.status == 429:
            error_cls = APIRateLimitError
        elif response.status >= 500:
            error_cls = APIServerError
        else:
            error_cls = APIError
        return error_cls(message, response=response)


class APIRateLimitError(APIError):
    """API 速率限制"""

    def _get_default_code(self) -> str:
        return "E429"


class APIServerError(APIError):
    """API 服务器错误"""

    def _get_default_code(self) -> str:
        return "E500"


class DownloadError(MidnightError):
    """下载相关错误"""

    def _get_default_code(self) -> str:
        return "E300"


class DownloadNetworkError(DownloadError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E301"


class DownloadFileError(DownloadError):
    """下载文件操作错误"""

    def _get_default_code(self) -> str:
        return "E303"


class DownloadCancelledError(DownloadError):
    """下载被取消"""

    def _get_default_code(self) -> str:
        return "E304"


class DownloadBatchError(DownloadError):
    """批量下载中有任务失败"""

    def __init__(self, failures: Dict[str, Exception]):
        destinations = list(failures)
        super().__init__(
            f"{len(destinations)} 个文件下载失败: {', '.join(destinations)}",
            context={
                "destinations": destinations,
                "errors": {dest: str(err) for dest, err in failures.items()},
            },
        )
        self.failures = failures

    def _get_default_code(self) -> str:
        return "E305"


class ResolutionError(MidnightError):
    """解析相关错误"""

    def _get_default_code(self) -> str:
        return "E600"


class UnresolvableIdentifierError(ResolutionError):
    """没有任何来源能够解析这些标识符"""

    def __init__(self, identifiers: Iterable[str], server: Optional[str] = None):
        identifiers = list(identifiers)
        where = f" (服务器 {server})" if server else ""
        super().__init__(
            f"无法解析{where}: {', '.join(identifiers)}",
            context={"identifiers": identifiers, "server": server},
        )
        self.identifiers = identifiers

    def _get_default_code(self) -> str:
        return "E601"


class DuplicateArtifactError(ResolutionError):
    """标识符已经声明过"""

    def __init__(self, identifiers: Iterable[str], server: Optional[str] = None):
        identifiers = list(identifiers)
        where = f"服务器 {server} 中" if server else ""
        super().__init__(
            f"{where}已存在: {', '.join(identifiers)}",
            context={"identifiers": identifiers, "server": server},
        )
        self.identifiers = identifiers

    def _get_default_code(self) -> str:
        return "E602"


__all__ = [
    # 基础异常
    "MidnightError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # API 异常
    "APIError",
    "APIRateLimitError",
    "APIServerError",
    # 下载异常
    "DownloadError",
    "DownloadNetworkError",
    "DownloadFileError",
    "DownloadCancelledError",
    "DownloadBatchError",
    # 解析异常
    "ResolutionError",
    "UnresolvableIdentifierError",
    "DuplicateArtifactError",
]
