"""
Midnight

将服务器规格中的 mods / plugins 表解析为具体的下载地址，并并发下载 jar 文件。
"""

__version__ = "0.1.0"
