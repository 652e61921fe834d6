"""领域协议定义

服务层只依赖这里的接口契约，测试中可以用内存实现替换真实的仓库和账户。
使用 typing.Protocol 而非 ABC，现有类无需修改继承关系即可满足协议。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from modsync.core.account.models import InstalledModule
    from modsync.core.gallery.models import ModuleDescriptor


class RegistryProvider(Protocol):
    """模块仓库协议"""

    def find_module(self, name: str, *, strict: bool = True) -> ModuleDescriptor | None:
        """查询模块最新版本，不存在返回 None"""
        ...

    def package_url(self, name: str, version: str) -> str:
        """指定版本的包内容地址"""
        ...


class AccountProvider(Protocol):
    """目标账户协议"""

    def list_modules(self) -> list[InstalledModule]:
        ...

    def get_module(self, name: str) -> InstalledModule | None:
        ...

    def import_module(self, name: str, content_url: str) -> InstalledModule:
        ...


class ArtifactResolver(Protocol):
    """包地址定位协议"""

    def resolve(self, start_url: str) -> str:
        ...
