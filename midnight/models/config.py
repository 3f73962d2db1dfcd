"""
配置数据模型

定义服务器类型、构件请求、解析上下文以及规格文件中的 general / server 配置。
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from midnight.exceptions import ConfigValidationError

DEFAULT_SOURCE_ORDER: Tuple[str, ...] = ("modrinth", "github", "direct", "local")


class PlatformType(Enum):
    """服务器 / 加载器类型"""

    FABRIC = "fabric"
    FORGE = "forge"
    SPIGOT = "spigot"
    PAPER = "paper"
    VELOCITY = "velocity"
    WATERFALL = "waterfall"
    BUNGEECORD = "bungeecord"
    VANILLA = "vanilla"

    @property
    def is_proxy(self) -> bool:
        return self in (
            PlatformType.VELOCITY,
            PlatformType.WATERFALL,
            PlatformType.BUNGEECORD,
        )

    @property
    def is_modded(self) -> bool:
        return self in (PlatformType.FABRIC, PlatformType.FORGE)

    @property
    def is_plugin_server(self) -> bool:
        return self in (PlatformType.SPIGOT, PlatformType.PAPER)

    @property
    def jar_folder(self) -> Optional[str]:
        """构件所在的子目录，不接受构件时为 None"""
        if self.is_modded:
            return "mods"
        if self.is_plugin_server or self.is_proxy:
            return "plugins"
        return None

    @classmethod
    def parse(cls, value: str) -> "PlatformType":
        try:
            return cls(value.lower())
        except ValueError:
            supported = ", ".join(t.value for t in cls)
            raise ConfigValidationError(
                f"不支持的服务器类型: {value} (支持: {supported})",
                context={"type": value},
            )


@dataclass(frozen=True)
class ArtifactRequest:
    """一个待解析的构件：标识符 + 版本表达式"""

    identifier: str
    version_expr: str = "*"

    @classmethod
    def from_mapping(cls, jars: Mapping[str, str]) -> List["ArtifactRequest"]:
        return [cls(name, str(expr)) for name, expr in jars.items()]


@dataclass(frozen=True)
class ServerContext:
    """
    解析上下文

    包含平台类型、目标游戏版本（代理服务器没有）、来源优先级以及可选的 GitHub 令牌。
    """

    platform_type: PlatformType
    game_version: Optional[str] = None
    source_order: Tuple[str, ...] = DEFAULT_SOURCE_ORDER
    github_token: Optional[str] = None

    def __post_init__(self):
        order = tuple(self.source_order)
        object.__setattr__(self, "source_order", order)
        duplicates = sorted({name for name in order if order.count(name) > 1})
        if duplicates:
            raise ConfigValidationError(
                f"jar-source-order 中存在重复来源: {', '.join(duplicates)}",
                context={"duplicates": duplicates},
            )


@dataclass
class GeneralConfig:
    """规格文件的 [general] 部分"""

    port: int = 25565
    jar_source_order: List[str] = field(
        default_factory=lambda: list(DEFAULT_SOURCE_ORDER)
    )
    data_dir: Path = Path("data")
    config_dir: Path = Path("config")
    overlay_dir: Path = Path("overlay")
    max_concurrent: int = 5
    max_retries: int = 2
    retry_delay: float = 1.0
    timeout: float = 3600.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneralConfig":
        defaults = cls()
        config = cls(
            port=int(data.get("port", defaults.port)),
            jar_source_order=list(
                data.get("jar-source-order", defaults.jar_source_order)
            ),
            data_dir=Path(data.get("data-dir", defaults.data_dir)),
            config_dir=Path(data.get("config-dir", defaults.config_dir)),
            overlay_dir=Path(data.get("overlay-dir", defaults.overlay_dir)),
            max_concurrent=int(data.get("max-concurrent", defaults.max_concurrent)),
            max_retries=int(data.get("max-retries", defaults.max_retries)),
            retry_delay=float(data.get("retry-delay", defaults.retry_delay)),
            timeout=float(data.get("timeout", defaults.timeout)),
        )
        if config.max_concurrent < 1:
            raise ConfigValidationError("max-concurrent 必须大于 0")
        if config.max_retries < 0:
            raise ConfigValidationError("max-retries 不能为负数")
        return config


@dataclass
class ServerConfig:
    """规格文件中的单个 [server.<name>]"""

    name: str
    type: PlatformType
    version: str
    children: List[str] = field(default_factory=list)
    mods: Dict[str, str] = field(default_factory=dict)
    plugins: Dict[str, str] = field(default_factory=dict)
    data_dir: Optional[Path] = None

    @property
    def minecraft_version(self) -> Optional[str]:
        """
        目标游戏版本

        代理服务器没有游戏版本；模组服务器的版本写作 "<加载器版本>:<游戏版本>"。
        """
        if self.type.is_proxy:
            return None
        if self.type.is_modded:
            _, sep, game_version = self.version.partition(":")
            if not sep or not game_version:
                raise ConfigValidationError(
                    f"服务器 {self.name} 的版本应为 '<加载器版本>:<游戏版本>'",
                    context={"server": self.name, "version": self.version},
                )
            return game_version
        return self.version

    @property
    def software_version(self) -> Optional[str]:
        """加载器 / 代理软件版本"""
        if self.type.is_proxy:
            return self.version
        if self.type.is_modded:
            return self.version.split(":")[0]
        return None

    @property
    def jars(self) -> Dict[str, str]:
        """当前类型对应的 mods / plugins 表"""
        if self.type.is_modded:
            return self.mods
        if self.type.is_plugin_server or self.type.is_proxy:
            return self.plugins
        return {}

    @property
    def jar_dir(self) -> Optional[Path]:
        folder = self.type.jar_folder
        if folder is None or self.data_dir is None:
            return None
        return self.data_dir / folder

    @classmethod
    def from_dict(
        cls, name: str, data: Dict[str, Any], general: GeneralConfig
    ) -> "ServerConfig":
        for key in ("type", "version"):
            if key not in data:
                raise ConfigValidationError(
                    f"服务器 {name} 缺少 {key}", context={"server": name}
                )
        data_dir = data.get("data-dir")
        return cls(
            name=name,
            type=PlatformType.parse(str(data["type"])),
            version=str(data["version"]),
            children=list(data.get("children") or []),
            mods={k: str(v) for k, v in (data.get("mods") or {}).items()},
            plugins={k: str(v) for k, v in (data.get("plugins") or {}).items()},
            data_dir=Path(data_dir) if data_dir else general.data_dir / name,
        )


@dataclass
class MidnightSpec:
    """完整的规格文件"""

    general: GeneralConfig
    servers: Dict[str, ServerConfig]

    @property
    def root_server(self) -> Optional[ServerConfig]:
        """没有父服务器的第一个服务器"""
        children = {child for s in self.servers.values() for child in s.children}
        return next(
            (s for name, s in self.servers.items() if name not in children), None
        )

    def get_server(self, name: str) -> ServerConfig:
        try:
            return self.servers[name]
        except KeyError:
            raise ConfigValidationError(
                f"未知服务器: {name}", context={"server": name}
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MidnightSpec":
        general = GeneralConfig.from_dict(data.get("general") or {})
        raw_servers = data.get("server") or {}
        if not raw_servers:
            raise ConfigValidationError("请配置至少一个服务器 ([server.<name>])")
        servers = {
            name: ServerConfig.from_dict(name, body, general)
            for name, body in raw_servers.items()
        }
        return cls(general=general, servers=servers)


def find_duplicates(existing: Iterable[str], requested: Iterable[str]) -> List[str]:
    """返回 requested 中已经存在于 existing 或自身重复的标识符"""
    seen = set(existing)
    duplicates: List[str] = []
    for identifier in requested:
        if identifier in seen and identifier not in duplicates:
            duplicates.append(identifier)
        seen.add(identifier)
    return duplicates
