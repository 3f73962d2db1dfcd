"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Dict, Optional

import click
import toml
import yaml
from loguru import logger

from midnight import __version__
from midnight.exceptions import ConfigParseError, MidnightError
from midnight.logger import setup_logger
from midnight.models import ArtifactRequest, MidnightSpec
from midnight.orchestrator import MidnightOrchestrator, summarize

DEFAULT_SPEC_FILE = "spec.midnight.toml"
DEFAULT_TOKENS_FILE = "tokens.toml"
TOKEN_ENV_PREFIX = "MIDNIGHT_TOKEN_"


def load_config(config_path: str) -> dict:
    """加载 TOML / JSON / YAML 配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise click.ClickException(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            return toml.load(path)
        elif suffix == ".json":
            return json.loads(path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"无法解析配置文件 {config_path}: {e}", context={"path": str(path)}
        ) from e
    raise click.ClickException(f"不支持的配置文件格式: {suffix}")


def load_tokens(tokens_path: Optional[str]) -> Dict[str, str]:
    """
    加载令牌

    令牌文件按来源名称存放（如 github = "..."），环境变量 MIDNIGHT_TOKEN_<来源> 优先。
    """
    tokens: Dict[str, str] = {}
    if tokens_path and Path(tokens_path).exists():
        tokens.update(
            {str(k): str(v) for k, v in load_config(tokens_path).items() if v}
        )
    for key, value in os.environ.items():
        if key.startswith(TOKEN_ENV_PREFIX) and value:
            tokens[key[len(TOKEN_ENV_PREFIX):].lower()] = value
    return tokens


def load_spec(spec_path: str) -> MidnightSpec:
    logger.info(f"使用规格文件 {Path(spec_path).absolute()}")
    spec = MidnightSpec.from_dict(load_config(spec_path))
    logger.success("规格文件解析完成")
    return spec


async def run_build(spec_path: str, tokens_path: Optional[str]) -> None:
    spec = load_spec(spec_path)
    orchestrator = MidnightOrchestrator(spec, load_tokens(tokens_path))
    results = await orchestrator.build()
    for server, paths in results.items():
        for line in summarize(paths):
            logger.info(f"[{server}] {line}")


async def run_add(
    spec_path: str,
    tokens_path: Optional[str],
    server: str,
    identifier: str,
    version_expr: str,
) -> None:
    spec = load_spec(spec_path)
    orchestrator = MidnightOrchestrator(spec, load_tokens(tokens_path))
    paths = await orchestrator.add(server, [ArtifactRequest(identifier, version_expr)])
    for line in summarize(paths):
        logger.info(line)


def run(coro) -> None:
    """运行协程并把 MidnightError 转为 ClickException"""
    try:
        asyncio.run(coro)
    except MidnightError as e:
        logger.error(str(e))
        raise click.ClickException(str(e))


spec_option = click.option(
    "-f",
    "--file",
    "spec_file",
    default=DEFAULT_SPEC_FILE,
    show_default=True,
    help="规格文件路径",
)
tokens_option = click.option(
    "--tokens",
    "tokens_file",
    default=DEFAULT_TOKENS_FILE,
    show_default=True,
    help="令牌文件路径",
)


@click.group(invoke_without_command=True)
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.option("--log-file", help="同时写入日志文件")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, debug: bool, log_file: Optional[str]):
    """Midnight - Minecraft 服务器 jar 下载工具"""
    setup_logger(level="DEBUG" if debug else None, log_file=log_file)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@spec_option
@tokens_option
def build(spec_file: str, tokens_file: str):
    """解析并下载所有服务器的 mods / plugins"""
    run(run_build(spec_file, tokens_file))


@main.command()
@click.argument("server")
@click.argument("identifier")
@click.argument("version", default="*")
@spec_option
@tokens_option
def add(server: str, identifier: str, version: str, spec_file: str, tokens_file: str):
    """向服务器添加一个 mod / plugin 并下载"""
    run(run_add(spec_file, tokens_file, server, identifier, version))


if __name__ == "__main__":
    main()
