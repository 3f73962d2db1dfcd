"""
标识符匹配规则

各来源 matches() 使用的正则表达式，均需整串匹配 (fullmatch) 且只接受 ASCII 字符。
"""

import re

# Modrinth 项目 slug
MODRINTH_SLUG = re.compile(r"""[\w!@$()`.+,"\-']{3,64}""", re.IGNORECASE | re.ASCII)

# GitHub 用户名：字母数字与连字符，1-39 位，连字符不能在首尾或连续出现
GITHUB_USER = re.compile(
    r"[a-z\d](?:[a-z\d]|-(?=[a-z\d])){0,38}", re.IGNORECASE | re.ASCII
)

# GitHub 仓库名
GITHUB_REPO = re.compile(r"[a-z\d\-_.]+", re.IGNORECASE | re.ASCII)

# owner/repo
GITHUB_MOD_NAME = re.compile(r"(?P<user>[^/]*)/(?P<repo>.*)")

# tag 或 tag/资产文件名，按第一个 / 拆分
GITHUB_TAG_AND_FILE = re.compile(r"(?P<tag>[^/]*)(/(?P<file>.*))?", re.DOTALL)

JAR_ASSET = re.compile(r"\.jar\Z")

LATEST = "*"
