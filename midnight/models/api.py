"""
API 数据模型

定义 Modrinth 版本 / 文件、GitHub 发布 / 资产，以及解析结果。
"""

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ResolvedArtifact:
    """
    解析结果

    display_name 用作输出文件名（不含 .jar），location 为 http(s) URL 或 file:// URI。
    """

    display_name: str
    location: str


@dataclass
class FileInfo:
    """Modrinth 版本中的文件"""

    url: str
    filename: str
    primary: bool = False
    size: int = 0
    hashes: Optional[Dict[str, str]] = None


@dataclass
class VersionInfo:
    """
    Modrinth 版本信息。
    """

    id: str
    version_number: str
    date_published: str
    loaders: List[str]
    game_versions: List[str]
    files: List[FileInfo]

    @property
    def primary_file(self) -> Optional[FileInfo]:
        """primary 文件优先，否则第一个文件"""
        for file in self.files:
            if file.primary:
                return file
        return self.files[0] if self.files else None

    @classmethod
    def from_modrinth(cls, data: dict) -> "VersionInfo":
        """
        将 Modrinth API 返回的版本信息转换为 VersionInfo 对象。
        """
        files = [
            FileInfo(
                url=file["url"],
                filename=file.get("filename", ""),
                primary=bool(file.get("primary", False)),
                size=file.get("size", 0),
                hashes=file.get("hashes"),
            )
            for file in data.get("files", [])
        ]
        return cls(
            id=data.get("id", ""),
            version_number=data["version_number"],
            date_published=data.get("date_published", ""),
            loaders=list(data.get("loaders", [])),
            game_versions=list(data.get("game_versions", [])),
            files=files,
        )


@dataclass
class AssetInfo:
    """GitHub 发布中的资产"""

    name: str
    url: str

    @classmethod
    def from_github(cls, data: dict) -> "AssetInfo":
        return cls(name=data["name"], url=data["url"])


@dataclass
class ReleaseInfo:
    """GitHub 发布"""

    tag_name: str
    assets_url: str

    @classmethod
    def from_github(cls, data: dict) -> "ReleaseInfo":
        return cls(
            tag_name=data.get("tag_name", ""),
            assets_url=data["assets_url"],
        )
