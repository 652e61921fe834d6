"""CLI — 查询命令"""

from __future__ import annotations

import click

from modsync.cli import _fail, _svc
from modsync.core.exceptions import ModSyncError
from modsync.core.gallery.spec_parser import parse_dependencies


def register(group: click.Group) -> None:
    group.add_command(list_modules)
    group.add_command(show)


@click.command(name="list")
@click.option("--user-only", is_flag=True, help="不显示平台全局模块")
def list_modules(user_only: bool) -> None:
    """列出账户中已安装的模块"""
    try:
        modules = _svc().account.list_modules()
    except ModSyncError as e:
        raise _fail(e) from e
    if user_only:
        modules = [m for m in modules if not m.is_global]
    if not modules:
        click.echo("账户中没有模块。")
        return
    for m in sorted(modules, key=lambda m: m.name.lower()):
        flag = " (global)" if m.is_global else ""
        click.echo(f"  {m.name:40s} {m.version or '-':14s} {m.state.value or '-'}{flag}")


@click.command()
@click.argument("name")
def show(name: str) -> None:
    """查看模块在仓库中的最新版本和依赖"""
    try:
        desc = _svc().registry.find_module(name, strict=True)
    except ModSyncError as e:
        raise _fail(e) from e
    if desc is None:
        click.echo(f"仓库中未找到: {name}")
        return
    click.echo(f"名称:   {desc.name}")
    click.echo(f"版本:   {desc.version}")
    click.echo(f"发布者: {desc.owners or '-'}")
    click.echo(f"地址:   {desc.content_url}")
    specs = parse_dependencies(desc.dependencies)
    if not specs:
        click.echo("依赖:   无")
        return
    click.echo("依赖:")
    for spec in specs:
        click.echo(f"  {spec.name} >= {spec.version_text}")
