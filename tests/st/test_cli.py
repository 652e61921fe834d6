"""CLI 系统测试 — 用内存仓库 / 账户替换服务容器"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from modsync.cli import main
from modsync.core.account.models import ProvisioningState as PS
from modsync.core.config import Config
from modsync.services.container import ServiceContainer
from modsync.utils.logger import reset_logging


@pytest.fixture()
def container(monkeypatch, registry, account, resolver) -> ServiceContainer:
    monkeypatch.setenv("MODSYNC_LOG_LEVEL", "CRITICAL")
    svc = ServiceContainer(Config(subscription_id="s", resource_group="r",
                                  automation_account="acct"))
    svc._instances.update(registry=registry, account=account, resolver=resolver)
    monkeypatch.setattr("modsync.cli.reset_container", lambda cfg: svc)
    monkeypatch.setattr("modsync.cli.get_container", lambda: svc)
    yield svc
    reset_logging()


def _invoke(tmp_path: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(main, ["--config", str(tmp_path / "none.yml"), *args])


class TestSync:
    def test_updates_and_summary(self, container, registry, account, tmp_path) -> None:
        registry.add("Az.Accounts", "2.5")
        account.install("Az.Accounts", "2.0")
        result = _invoke(tmp_path, "sync")
        assert result.exit_code == 0, result.output
        assert "Az.Accounts" in result.output
        assert "更新 1" in result.output

    def test_json_output(self, container, registry, account, tmp_path) -> None:
        registry.add("Az.Accounts", "2.5")
        account.install("Az.Accounts", "2.5")
        result = _invoke(tmp_path, "sync", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["up_to_date"] == 1
        assert data["modules"][0]["name"] == "Az.Accounts"

    def test_failed_import_exit_code(self, container, registry, account, tmp_path) -> None:
        registry.add("Az.Accounts", "2.5")
        account.install("Az.Accounts", "2.0")
        account.scripted["az.accounts"] = [PS.FAILED]
        result = _invoke(tmp_path, "sync", "--all-modules")
        assert result.exit_code == 1

    def test_dependency_failure_reported(self, container, registry, account, tmp_path) -> None:
        registry.add("Az.Storage", "5.0", deps="Az.Accounts:2.0:")
        registry.failing.add("az.accounts")
        account.install("Az.Storage", "4.0")
        result = _invoke(tmp_path, "sync")
        assert result.exit_code == 1
        assert "DEPENDENCY_RESOLUTION_FAILED" in result.output

    def test_registry_error_counted(self, container, registry, account, tmp_path) -> None:
        registry.failing.add("az.accounts")
        account.install("Az.Accounts", "2.0")
        result = _invoke(tmp_path, "sync")
        assert result.exit_code == 0, result.output
        assert "registry_error" in result.output
        assert "查询失败 1" in result.output


class TestImport:
    def test_import_with_dependencies(self, container, registry, account, tmp_path) -> None:
        registry.add("Foo", "2.0", deps="Bar:1.5:")
        registry.add("Bar", "1.5")
        result = _invoke(tmp_path, "import", "Foo")
        assert result.exit_code == 0, result.output
        assert account.imported_names == ["Bar", "Foo"]
        assert "1. Bar@1.5" in result.output


class TestQuery:
    def test_list(self, container, account, tmp_path) -> None:
        account.install("Az.Accounts", "2.0")
        account.install("Orchestrator.AssetManagement.Cmdlets", "1.0", is_global=True)
        result = _invoke(tmp_path, "list", "--user-only")
        assert result.exit_code == 0
        assert "Az.Accounts" in result.output
        assert "Orchestrator" not in result.output

    def test_show(self, container, registry, tmp_path) -> None:
        registry.add("Az.Storage", "5.5.0", deps="Az.Accounts:[2.12.1, ):")
        result = _invoke(tmp_path, "show", "az.storage")
        assert result.exit_code == 0
        assert "5.5.0" in result.output
        assert "Az.Accounts >= 2.12.1" in result.output

    def test_show_missing(self, container, tmp_path) -> None:
        result = _invoke(tmp_path, "show", "Nope")
        assert result.exit_code == 0
        assert "未找到" in result.output
