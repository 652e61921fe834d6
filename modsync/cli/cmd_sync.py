"""CLI — 同步与导入命令"""

from __future__ import annotations

import json

import click

from modsync.cli import _fail, _svc
from modsync.core.exceptions import ModSyncError
from modsync.services.sync_service import SyncReport


def register(group: click.Group) -> None:
    group.add_command(sync)
    group.add_command(import_module)


def _echo_report(report: SyncReport, as_json: bool) -> None:
    summary = report.summary()
    if as_json:
        click.echo(json.dumps({
            **summary,
            "modules": [o.__dict__ for o in report.outcomes],
        }, ensure_ascii=False, indent=2))
        return

    for o in report.outcomes:
        target = f" -> {o.target_version}" if o.target_version else ""
        note = f"  {o.message}" if o.message else ""
        click.echo(f"  {o.name:40s} {o.status:15s} {o.installed_version or '-'}{target}{note}")
    if summary["imports"]:
        click.echo("导入记录:")
        for i, job in enumerate(summary["imports"], 1):
            click.echo(f"  {i}. {job['module']}@{job['version']} [{job['phase']}]")
    click.echo(
        f"共 {summary['total']} 个模块: 更新 {summary['updated']}, "
        f"最新 {summary['up_to_date']}, 查询失败 {summary['registry_error']}, "
        f"失败 {summary['failed']}"
    )


@click.command()
@click.option(
    "--azure-only/--all-modules", default=True,
    help="仅更新 Azure SDK 发布的模块（默认），或更新全部模块",
)
@click.option("--force", is_flag=True, help="重试上次导入失败的模块")
@click.option("--json", "as_json", is_flag=True, help="以 JSON 输出结果")
def sync(azure_only: bool, force: bool, as_json: bool) -> None:
    """将账户中的模块更新到仓库最新版本"""
    try:
        report = _svc().sync.run(update_azure_only=azure_only, force=force)
    except ModSyncError as e:
        raise _fail(e) from e
    _echo_report(report, as_json)
    if not report.success:
        raise SystemExit(1)


@click.command(name="import")
@click.argument("name")
@click.option("--version", default=None, help="指定版本（默认最新）")
@click.option("--json", "as_json", is_flag=True, help="以 JSON 输出结果")
def import_module(name: str, version: str | None, as_json: bool) -> None:
    """导入新模块（先导入其依赖）"""
    try:
        report = _svc().sync.import_new(name, version=version)
    except ModSyncError as e:
        raise _fail(e) from e
    _echo_report(report, as_json)
    if not report.success:
        raise SystemExit(1)
