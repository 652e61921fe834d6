"""自动化账户 REST 客户端

通过 Azure Resource Manager 接口读取和导入模块:

  {management_url}/subscriptions/{sub}/resourceGroups/{rg}/providers/
      Microsoft.Automation/automationAccounts/{account}/{collection}/{name}

运行时 5.1 使用 modules 集合，7.2 使用 powershell72Modules 集合。
"""

from __future__ import annotations

import logging
from typing import Any, Callable
from urllib.parse import quote

from modsync.core.account.models import InstalledModule
from modsync.core.exceptions import AccountError, ImportSubmissionError
from modsync.utils.net import DEFAULT_TIMEOUT, HttpError, request_json

logger = logging.getLogger(__name__)

_COLLECTIONS = {
    "5.1": "modules",
    "7.2": "powershell72Modules",
}

# 签名与 utils.net.request_json 一致，测试中可替换
JsonTransport = Callable[..., dict[str, Any]]


class AutomationAccountClient:
    """目标自动化账户的模块接口"""

    def __init__(
        self,
        *,
        subscription_id: str,
        resource_group: str,
        account_name: str,
        token_provider: Callable[[], str],
        runtime_version: str = "5.1",
        management_url: str = "https://management.azure.com",
        api_version: str = "2019-06-01",
        transport: JsonTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if runtime_version not in _COLLECTIONS:
            raise ValueError(f"不支持的运行时版本: {runtime_version}")
        self.account_name = account_name
        self.runtime_version = runtime_version
        self.api_version = api_version
        self.timeout = timeout
        self._token_provider = token_provider
        self._transport = transport or request_json
        self._base = (
            f"{management_url.rstrip('/')}/subscriptions/{subscription_id}"
            f"/resourceGroups/{resource_group}/providers/Microsoft.Automation"
            f"/automationAccounts/{account_name}/{_COLLECTIONS[runtime_version]}"
        )

    def _url(self, name: str = "") -> str:
        path = f"{self._base}/{quote(name)}" if name else self._base
        return f"{path}?api-version={self.api_version}"

    def _call(self, url: str, method: str = "GET",
              payload: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._token_provider()}"}
        return self._transport(
            url, method=method, payload=payload,
            headers=headers, timeout=self.timeout,
        )

    def list_modules(self) -> list[InstalledModule]:
        """列出账户中所有模块（自动翻页）"""
        modules: list[InstalledModule] = []
        url: str | None = self._url()
        while url:
            try:
                data = self._call(url)
            except HttpError as e:
                raise AccountError(
                    f"列出账户模块失败: {self.account_name} - {e}", status=e.status,
                ) from e
            modules.extend(InstalledModule.from_resource(item)
                           for item in data.get("value") or [])
            url = data.get("nextLink")
        logger.info("账户 %s 中共有 %d 个模块 (runtime=%s)",
                    self.account_name, len(modules), self.runtime_version,
                    extra={"runtime": self.runtime_version})
        return modules

    def get_module(self, name: str) -> InstalledModule | None:
        """查询单个模块，不存在时返回 None"""
        try:
            data = self._call(self._url(name))
        except HttpError as e:
            if e.status == 404:
                return None
            raise AccountError(f"查询模块失败: {name} - {e}", status=e.status) from e
        return InstalledModule.from_resource(data) if data else None

    def import_module(self, name: str, content_url: str) -> InstalledModule:
        """提交导入请求，返回账户中该模块的当前状态

        Raises:
            ImportSubmissionError: 账户拒绝导入请求
        """
        payload = {"properties": {"contentLink": {"uri": content_url}}}
        logger.debug("PUT %s <- %s", name, content_url,
                     extra={"sync_module": name, "runtime": self.runtime_version})
        try:
            data = self._call(self._url(name), method="PUT", payload=payload)
        except HttpError as e:
            raise ImportSubmissionError(
                f"提交导入失败: {name} - {e}", status=e.status,
            ) from e
        if not data:
            return InstalledModule(name=name)
        return InstalledModule.from_resource(data)
