"""模块仓库数据模型

数据类:
- ModuleDescriptor: 仓库中某个模块最新版本的元信息
- DependencySpec: 一条依赖声明（模块名 + 最低版本）
"""

from __future__ import annotations

from dataclasses import dataclass

from modsync.core.version import ModuleVersion


@dataclass(frozen=True)
class ModuleDescriptor:
    """仓库查询结果，每次查询重新构造"""

    name: str
    version: str
    content_url: str
    dependencies: str = ""   # 原始依赖声明，如 "Az.Accounts:[2.12.1, ):|"
    owners: str = ""

    def is_owned_by(self, owner: str) -> bool:
        """owners 字段可能是逗号分隔的多个发布者"""
        wanted = owner.strip().lower()
        return any(o.strip().lower() == wanted for o in self.owners.split(","))


@dataclass(frozen=True)
class DependencySpec:
    """依赖声明，min_version 为 None 表示任意已安装版本都满足"""

    name: str
    min_version: ModuleVersion | None = None

    @property
    def version_text(self) -> str:
        return str(self.min_version) if self.min_version else "latest"
