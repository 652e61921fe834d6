"""同步服务 — 让账户中的模块与仓库最新版本保持一致

对账户中每个已安装模块:
  1. 查询仓库最新版本（查询失败只跳过该模块，记为 registry_error）
  2. 仅更新 Azure SDK 发布的模块时，跳过其他发布者的模块
  3. 上次导入失败且未指定 force 时跳过，避免反复重试坏包
  4. 版本不一致（或失败后强制重试）时，连同依赖一起导入

依赖解析失败会中止整个同步；顶层模块自身的定位或导入失败只记录在报告中。
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from modsync.core.account.models import InstalledModule, ProvisioningState
from modsync.core.exceptions import DependencyResolutionError, RegistryQueryError
from modsync.core.protocols import AccountProvider, RegistryProvider
from modsync.services.importer import ImportJob
from modsync.services.resolver import (
    DEFAULT_MAX_DEPTH,
    DependencyResolver,
    ResolutionContext,
)

logger = logging.getLogger(__name__)

UPDATED = "updated"
UP_TO_DATE = "up_to_date"
SKIPPED_SCOPE = "skipped_scope"
SKIPPED_FAILED = "skipped_failed"
NOT_FOUND = "not_found"
REGISTRY_ERROR = "registry_error"
FAILED = "failed"


@dataclass
class ModuleOutcome:
    """单个模块的同步结果"""

    name: str
    status: str
    installed_version: str = ""
    target_version: str = ""
    message: str = ""


@dataclass
class SyncReport:
    """一次同步的汇总"""

    outcomes: list[ModuleOutcome] = field(default_factory=list)
    imports: list[ImportJob] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(o.status != FAILED for o in self.outcomes) and all(
            j.succeeded for j in self.imports
        )

    def summary(self) -> dict[str, Any]:
        counts = Counter(o.status for o in self.outcomes)
        return {
            "total": len(self.outcomes),
            **{status: counts.get(status, 0) for status in (
                UPDATED, UP_TO_DATE, SKIPPED_SCOPE, SKIPPED_FAILED, NOT_FOUND,
                REGISTRY_ERROR, FAILED,
            )},
            "imports": [j.to_dict() for j in self.imports],
        }


class SyncService:
    """模块同步驱动"""

    def __init__(
        self,
        registry: RegistryProvider,
        account: AccountProvider,
        resolver: DependencyResolver,
        *,
        sdk_owner: str = "azure-sdk",
        max_depth: int = DEFAULT_MAX_DEPTH,
        version_overrides: dict[str, str] | None = None,
    ) -> None:
        self._registry = registry
        self._account = account
        self._resolver = resolver
        self.sdk_owner = sdk_owner
        self.max_depth = max_depth
        self._overrides = {k.lower(): v for k, v in (version_overrides or {}).items()}

    def run(self, update_azure_only: bool = True, force: bool = False) -> SyncReport:
        """同步账户中的全部模块

        Raises:
            DependencyResolutionError: 某个依赖解析失败，同步已中止
        """
        ctx = ResolutionContext(max_depth=self.max_depth)
        report = SyncReport(imports=ctx.imports)

        modules = self._account.list_modules()
        if not modules:
            logger.info("账户中没有任何模块，无需同步")
            return report

        scope = "仅 Azure SDK 模块" if update_azure_only else "全部模块"
        logger.info("开始同步 %d 个模块 (%s, force=%s)", len(modules), scope, force)
        for installed in modules:
            outcome = self._sync_one(installed, update_azure_only, force, ctx)
            report.outcomes.append(outcome)

        if not update_azure_only and all(o.status == NOT_FOUND for o in report.outcomes):
            logger.info("账户中的模块在仓库中均未找到")
        logger.info("同步完成: %s", {
            k: v for k, v in report.summary().items() if k != "imports"
        })
        return report

    def import_new(self, name: str, version: str | None = None) -> SyncReport:
        """导入账户中尚不存在的模块（连同依赖）"""
        ctx = ResolutionContext(max_depth=self.max_depth)
        report = SyncReport(imports=ctx.imports)
        installed = self._account.get_module(name)
        current = installed.version if installed and not installed.is_global else ""

        job = self._resolver.ensure_imported(name, version, ctx)
        if job is None:
            report.outcomes.append(ModuleOutcome(
                name=name, status=NOT_FOUND, installed_version=current,
                message="仓库中未找到",
            ))
        else:
            report.outcomes.append(self._outcome_from_job(name, current, job))
        return report

    def _sync_one(
        self,
        installed: InstalledModule,
        update_azure_only: bool,
        force: bool,
        ctx: ResolutionContext,
    ) -> ModuleOutcome:
        name = installed.name
        # 新版本检查中的查询失败只影响当前模块，不同于依赖路径上的致命失败
        try:
            descriptor = self._registry.find_module(name, strict=True)
        except RegistryQueryError as e:
            logger.warning("查询 %s 的最新版本失败，跳过: %s", name, e)
            return ModuleOutcome(
                name=name, status=REGISTRY_ERROR,
                installed_version=installed.version, message=str(e),
            )
        if descriptor is None:
            return ModuleOutcome(
                name=name, status=NOT_FOUND, installed_version=installed.version,
                message="仓库中未找到",
            )

        if update_azure_only and not descriptor.is_owned_by(self.sdk_owner):
            logger.debug("跳过非 Azure SDK 模块: %s (owners=%s)", name, descriptor.owners)
            return ModuleOutcome(
                name=name, status=SKIPPED_SCOPE, installed_version=installed.version,
            )

        pinned = self._overrides.get(name.lower())
        target = pinned or descriptor.version
        previously_failed = installed.state is ProvisioningState.FAILED

        if previously_failed and not force:
            logger.warning("%s 上次导入失败，跳过更新（可使用 --force 重试）", name)
            return ModuleOutcome(
                name=name, status=SKIPPED_FAILED,
                installed_version=installed.version, target_version=target,
            )

        if installed.version == target and not previously_failed:
            logger.info("%s 已是最新版本 %s", name, target)
            return ModuleOutcome(
                name=name, status=UP_TO_DATE,
                installed_version=installed.version, target_version=target,
            )

        logger.info("更新 %s: %s -> %s", name, installed.version or "未知", target)
        try:
            job = self._resolver.ensure_imported(name, pinned, ctx)
        except DependencyResolutionError as e:
            if not e.is_top_level:
                raise
            logger.error("更新 %s 失败，继续处理其他模块: %s", name, e)
            return ModuleOutcome(
                name=name, status=FAILED, installed_version=installed.version,
                target_version=target, message=str(e),
            )
        if job is None:
            return ModuleOutcome(
                name=name, status=NOT_FOUND, installed_version=installed.version,
                target_version=target, message="解析时仓库中已不存在",
            )
        return self._outcome_from_job(name, installed.version, job)

    @staticmethod
    def _outcome_from_job(name: str, installed_version: str, job: ImportJob) -> ModuleOutcome:
        return ModuleOutcome(
            name=name,
            status=UPDATED if job.succeeded else FAILED,
            installed_version=installed_version,
            target_version=job.version,
            message=job.error,
        )
