"""共享 fixture — 内存版模块仓库 / 目标账户

FakeRegistry  模拟仓库查询，记录每次查询的模块名
FakeAccount   模拟自动化账户，记录导入提交顺序，可按模块脚本化导入状态序列
FakeLocator   把 /package/<name>/<version> 映射成 https://cdn.test/<name>.<version>.nupkg
"""

from __future__ import annotations

import pytest

from modsync.core.account.models import InstalledModule, ProvisioningState
from modsync.core.exceptions import ImportSubmissionError, RegistryQueryError
from modsync.core.gallery.models import ModuleDescriptor
from modsync.services.importer import ImportOrchestrator
from modsync.services.resolver import DependencyResolver

GALLERY = "https://gallery.test/api/v2"


class FakeRegistry:
    def __init__(self) -> None:
        self.modules: dict[str, ModuleDescriptor] = {}
        self.failing: set[str] = set()
        self.queries: list[str] = []

    def add(self, name: str, version: str, deps: str = "",
            owners: str = "azure-sdk") -> ModuleDescriptor:
        desc = ModuleDescriptor(
            name=name, version=version,
            content_url=self.package_url(name, version),
            dependencies=deps, owners=owners,
        )
        self.modules[name.lower()] = desc
        return desc

    def find_module(self, name: str, *, strict: bool = True) -> ModuleDescriptor | None:
        self.queries.append(name)
        if name.lower() in self.failing:
            if strict:
                raise RegistryQueryError(f"查询模块仓库失败: {name}")
            return None
        return self.modules.get(name.lower())

    def package_url(self, name: str, version: str) -> str:
        return f"{GALLERY}/package/{name}/{version}"


class FakeLocator:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.broken: set[str] = set()

    def resolve(self, start_url: str) -> str:
        self.calls.append(start_url)
        if start_url in self.broken:
            return ""
        if start_url.endswith(".nupkg"):
            return start_url
        name, version = start_url.rstrip("/").split("/")[-2:]
        return f"https://cdn.test/{name}.{version}.nupkg"


class FakeAccount:
    def __init__(self) -> None:
        self.modules: dict[str, InstalledModule] = {}
        self.submissions: list[tuple[str, str]] = []
        self.scripted: dict[str, list[ProvisioningState]] = {}
        self.rejecting: set[str] = set()

    def install(self, name: str, version: str,
                state: ProvisioningState = ProvisioningState.SUCCEEDED,
                is_global: bool = False) -> InstalledModule:
        module = InstalledModule(name=name, version=version, state=state, is_global=is_global)
        self.modules[name.lower()] = module
        return module

    def list_modules(self) -> list[InstalledModule]:
        return list(self.modules.values())

    def get_module(self, name: str) -> InstalledModule | None:
        module = self.modules.get(name.lower())
        queue = self.scripted.get(name.lower())
        if module is not None and queue:
            module.state = queue.pop(0)
        return module

    def import_module(self, name: str, content_url: str) -> InstalledModule:
        if name.lower() in self.rejecting:
            raise ImportSubmissionError(f"提交导入失败: {name}", status=400)
        self.submissions.append((name, content_url))
        filename = content_url.rsplit("/", 1)[-1]
        version = filename[len(name) + 1:-len(".nupkg")]
        queue = self.scripted.get(name.lower())
        state = queue.pop(0) if queue else ProvisioningState.SUCCEEDED
        module = InstalledModule(name=name, version=version, state=state)
        self.modules[name.lower()] = module
        return module

    @property
    def imported_names(self) -> list[str]:
        return [name for name, _ in self.submissions]


@pytest.fixture()
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture()
def account() -> FakeAccount:
    return FakeAccount()


@pytest.fixture()
def locator() -> FakeLocator:
    return FakeLocator()


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def importer(account: FakeAccount, sleeps: list[float]) -> ImportOrchestrator:
    return ImportOrchestrator(account, poll_interval=5, max_polls=10, sleep=sleeps.append)


@pytest.fixture()
def resolver(registry, account, locator, importer) -> DependencyResolver:
    return DependencyResolver(registry, account, locator, importer)
