"""自动化账户 REST 客户端测试 — 替换 transport，不发真实请求"""

from __future__ import annotations

import logging
from typing import Any

import pytest

from modsync.core.account.client import AutomationAccountClient
from modsync.core.account.models import InstalledModule, ProvisioningState
from modsync.core.exceptions import AccountError, ImportSubmissionError
from modsync.utils.net import HttpError

BASE = (
    "https://mgmt.test/subscriptions/sub-1/resourceGroups/rg-1/providers/"
    "Microsoft.Automation/automationAccounts/acct"
)


class TransportStub:
    def __init__(self, responses: dict[tuple[str, str], Any]) -> None:
        self.responses = responses
        self.calls: list[dict[str, Any]] = []

    def __call__(self, url: str, *, method: str = "GET", payload=None,
                 headers=None, timeout: float = 60) -> dict[str, Any]:
        self.calls.append({"url": url, "method": method, "payload": payload, "headers": headers})
        result = self.responses.get((method, url), {})
        if isinstance(result, Exception):
            raise result
        return result


def _resource(name: str, version: str, state: str = "Succeeded", is_global: bool = False) -> dict:
    return {
        "name": name,
        "properties": {"version": version, "provisioningState": state, "isGlobal": is_global},
    }


def _client(transport: TransportStub, runtime: str = "5.1") -> AutomationAccountClient:
    return AutomationAccountClient(
        subscription_id="sub-1", resource_group="rg-1", account_name="acct",
        token_provider=lambda: "tok", runtime_version=runtime,
        management_url="https://mgmt.test/", transport=transport,
    )


class TestListModules:
    def test_paging(self) -> None:
        first = f"{BASE}/modules?api-version=2019-06-01"
        second = f"{BASE}/modules?api-version=2019-06-01&$skiptoken=2"
        transport = TransportStub({
            ("GET", first): {"value": [_resource("Az.Accounts", "2.0.0")], "nextLink": second},
            ("GET", second): {"value": [_resource("Orchestrator.AssetManagement.Cmdlets", "1.0", is_global=True)]},
        })
        modules = _client(transport).list_modules()
        assert [m.name for m in modules] == ["Az.Accounts", "Orchestrator.AssetManagement.Cmdlets"]
        assert modules[1].is_global
        assert transport.calls[0]["headers"] == {"Authorization": "Bearer tok"}

    def test_runtime_72_collection(self) -> None:
        url = f"{BASE}/powershell72Modules?api-version=2019-06-01"
        transport = TransportStub({("GET", url): {"value": []}})
        assert _client(transport, runtime="7.2").list_modules() == []
        assert transport.calls[0]["url"] == url

    def test_log_carries_runtime(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="modsync.core.account.client"):
            _client(TransportStub({}), runtime="7.2").list_modules()
        assert [getattr(r, "runtime", None) for r in caplog.records] == ["7.2"]

    def test_error_wrapped(self) -> None:
        url = f"{BASE}/modules?api-version=2019-06-01"
        transport = TransportStub({("GET", url): HttpError("HTTP 错误 403", status=403)})
        with pytest.raises(AccountError) as exc:
            _client(transport).list_modules()
        assert exc.value.status == 403

    def test_unknown_runtime(self) -> None:
        with pytest.raises(ValueError, match="运行时版本"):
            _client(TransportStub({}), runtime="6.0")


class TestGetModule:
    def test_found(self) -> None:
        url = f"{BASE}/modules/Az.Storage?api-version=2019-06-01"
        transport = TransportStub({("GET", url): _resource("Az.Storage", "5.0.0", "Failed")})
        module = _client(transport).get_module("Az.Storage")
        assert module == InstalledModule(
            name="Az.Storage", version="5.0.0", state=ProvisioningState.FAILED,
        )

    def test_404_is_none(self) -> None:
        url = f"{BASE}/modules/Nope?api-version=2019-06-01"
        transport = TransportStub({("GET", url): HttpError("HTTP 错误 404", status=404)})
        assert _client(transport).get_module("Nope") is None

    def test_other_error_raises(self) -> None:
        url = f"{BASE}/modules/Nope?api-version=2019-06-01"
        transport = TransportStub({("GET", url): HttpError("HTTP 错误 500", status=500)})
        with pytest.raises(AccountError):
            _client(transport).get_module("Nope")


class TestImportModule:
    def test_put_content_link(self) -> None:
        url = f"{BASE}/modules/Az.Storage?api-version=2019-06-01"
        transport = TransportStub({("PUT", url): _resource("Az.Storage", "", "Creating")})
        handle = _client(transport).import_module("Az.Storage", "https://cdn.test/az.storage.5.5.0.nupkg")
        assert handle.state is ProvisioningState.CREATING
        assert transport.calls[0]["payload"] == {
            "properties": {"contentLink": {"uri": "https://cdn.test/az.storage.5.5.0.nupkg"}},
        }

    def test_rejected(self) -> None:
        url = f"{BASE}/modules/Az.Storage?api-version=2019-06-01"
        transport = TransportStub({("PUT", url): HttpError("HTTP 错误 400", status=400)})
        with pytest.raises(ImportSubmissionError):
            _client(transport).import_module("Az.Storage", "https://cdn.test/x.nupkg")


class TestProvisioningState:
    @pytest.mark.parametrize("raw,expected", [
        ("Succeeded", ProvisioningState.SUCCEEDED),
        ("created", ProvisioningState.CREATED),
        ("ContentValidated", ProvisioningState.CONTENT_VALIDATED),
        (None, ProvisioningState.UNKNOWN),
        ("SomethingNew", ProvisioningState.UNKNOWN),
    ])
    def test_parse(self, raw, expected) -> None:
        assert ProvisioningState.parse(raw) is expected

    def test_terminal(self) -> None:
        assert ProvisioningState.FAILED.is_terminal
        assert not ProvisioningState.FAILED.is_success
        assert ProvisioningState.CREATED.is_success
        assert not ProvisioningState.UNKNOWN.is_terminal
