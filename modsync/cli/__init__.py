"""modsync 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os

import click

from modsync import __version__
from modsync.core.exceptions import ModSyncError
from modsync.services.container import ServiceContainer, get_container, reset_container
from modsync.utils.logger import setup_logging


def _svc() -> ServiceContainer:
    """获取全局服务容器的快捷方式"""
    return get_container()


def _fail(exc: ModSyncError) -> click.ClickException:
    """把业务异常转换为 CLI 错误（退出码 1）"""
    return click.ClickException(f"[{exc.code}] {exc}")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path", default="",
    help="配置文件路径（默认读取 MODSYNC_CONFIG 或 configs/default.yml）",
)
def main(config_path: str) -> None:
    """modsync - 自动化账户模块同步工具"""
    setup_logging(
        level=os.getenv("MODSYNC_LOG_LEVEL", "INFO"),
        json_output=os.getenv("MODSYNC_LOG_JSON", "") == "1",
    )
    from modsync.core.config import init_config
    try:
        reset_container(init_config(config_path))
    except (OSError, ValueError, TypeError) as e:
        raise click.ClickException(f"加载配置失败: {e}") from e


# 注册各领域子命令
from modsync.cli.cmd_sync import register as _reg_sync  # noqa: E402
from modsync.cli.cmd_query import register as _reg_query  # noqa: E402

_reg_sync(main)
_reg_query(main)
