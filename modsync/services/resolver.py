"""依赖解析器

确保一个模块的全部传递依赖在导入它之前已经存在于目标账户中:

  1. 查询仓库；仓库中不存在则跳过（可能是手动上传的私有模块）
  2. 确定内容地址：未指定版本用仓库返回的地址，指定版本则拼接 /package/<name>/<version>
  3. 逐个检查依赖：已处理过的跳过；账户中缺失或版本低于要求的先递归导入
  4. 跟随重定向定位最终包地址
  5. 提交导入并等待结束

ResolutionContext 在一次同步中共享，记录已处理的依赖和当前递归深度，
保证同一个依赖在一次同步中最多导入一次，循环依赖不会重复导入，且递归深度不超过上限。
除上述跳过情形外，任何异常都包装成 DependencyResolutionError 向上抛出并带上出错时的深度:
depth=0 是顶层模块自身的失败，由调用方决定是否隔离；depth>0 是依赖失败，中止整个同步。
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from modsync.core.account.models import InstalledModule
from modsync.core.exceptions import ArtifactResolutionError, DependencyResolutionError
from modsync.core.gallery.models import DependencySpec, ModuleDescriptor
from modsync.core.gallery.spec_parser import parse_dependencies
from modsync.core.protocols import AccountProvider, ArtifactResolver, RegistryProvider
from modsync.core.version import ModuleVersion
from modsync.services.importer import ImportJob, ImportOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5


@dataclass
class ResolutionContext:
    """一次同步内共享的解析状态"""

    max_depth: int = DEFAULT_MAX_DEPTH
    depth: int = 0
    processed: set[str] = field(default_factory=set)
    in_progress: set[str] = field(default_factory=set)
    imports: list[ImportJob] = field(default_factory=list)

    def is_processed(self, name: str) -> bool:
        return name.lower() in self.processed

    def mark_processed(self, name: str) -> None:
        self.processed.add(name.lower())

    def is_resolving(self, name: str) -> bool:
        return name.lower() in self.in_progress

    @contextmanager
    def resolving(self, name: str) -> Iterator[None]:
        """标记模块正在解析中，用于识别循环依赖"""
        key = name.lower()
        self.in_progress.add(key)
        try:
            yield
        finally:
            self.in_progress.discard(key)

    @property
    def at_limit(self) -> bool:
        return self.depth >= self.max_depth

    @contextmanager
    def descend(self) -> Iterator[None]:
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1


class DependencyResolver:
    """递归、限深、不降级的依赖解析器"""

    def __init__(
        self,
        registry: RegistryProvider,
        account: AccountProvider,
        locator: ArtifactResolver,
        importer: ImportOrchestrator,
    ) -> None:
        self._registry = registry
        self._account = account
        self._locator = locator
        self._importer = importer

    def ensure_imported(
        self,
        name: str,
        version: str | None = None,
        ctx: ResolutionContext | None = None,
    ) -> ImportJob | None:
        """导入模块（先导入其依赖），仓库中不存在时返回 None

        Raises:
            DependencyResolutionError: 解析或定位失败；depth>0 表示依赖失败，调用方应中止同步
        """
        if ctx is None:
            ctx = ResolutionContext()
        try:
            with ctx.resolving(name):
                return self._ensure_imported(name, version, ctx)
        except DependencyResolutionError:
            raise
        except Exception as e:
            logger.exception("导入 %s 失败 (depth=%d)", name, ctx.depth)
            raise DependencyResolutionError(
                f"导入 {name}@{version or 'latest'} 失败: {e}",
                module=name, depth=ctx.depth,
            ) from e

    def _ensure_imported(
        self, name: str, version: str | None, ctx: ResolutionContext,
    ) -> ImportJob | None:
        descriptor = self._registry.find_module(name, strict=True)
        if descriptor is None:
            logger.info("仓库中没有 %s，跳过导入", name)
            return None

        if version:
            content_url = self._registry.package_url(descriptor.name, version)
        else:
            content_url = descriptor.content_url

        specs = parse_dependencies(descriptor.dependencies)
        if specs:
            self._resolve_dependencies(descriptor, specs, ctx)

        archive_url = self._locator.resolve(content_url)
        if not archive_url:
            raise ArtifactResolutionError(
                f"无法定位 {descriptor.name} 的包地址: {content_url or '(空)'}"
            )

        job = self._importer.submit_and_wait(
            descriptor.name, archive_url, version=version or descriptor.version,
        )
        ctx.imports.append(job)
        return job

    def _resolve_dependencies(
        self,
        descriptor: ModuleDescriptor,
        specs: list[DependencySpec],
        ctx: ResolutionContext,
    ) -> None:
        if ctx.at_limit:
            for spec in specs:
                logger.info(
                    "递归深度已达上限 %d，假定已安装的 %s 满足 %s 的要求",
                    ctx.max_depth, spec.name, descriptor.name,
                )
            return

        with ctx.descend():
            for spec in specs:
                if ctx.is_processed(spec.name):
                    logger.debug("依赖 %s 本次已处理过，跳过", spec.name)
                    continue
                if ctx.is_resolving(spec.name):
                    logger.warning(
                        "检测到循环依赖: %s -> %s，跳过", descriptor.name, spec.name,
                    )
                    continue

                installed = self._installed(spec.name)
                if installed is not None and self._satisfies(installed, spec):
                    logger.info(
                        "依赖已满足: %s %s >= %s",
                        spec.name, installed.version, spec.version_text,
                    )
                    continue

                logger.info(
                    "导入 %s 的依赖 %s@%s (已安装: %s, depth=%d)",
                    descriptor.name, spec.name, spec.version_text,
                    installed.version if installed else "无", ctx.depth,
                )
                self.ensure_imported(
                    spec.name,
                    str(spec.min_version) if spec.min_version else None,
                    ctx,
                )
                ctx.mark_processed(spec.name)

    def _installed(self, name: str) -> InstalledModule | None:
        """重新查询账户中的安装状态，平台全局模块视为未安装"""
        module = self._account.get_module(name)
        if module is None or module.is_global:
            return None
        return module

    @staticmethod
    def _satisfies(installed: InstalledModule, spec: DependencySpec) -> bool:
        if spec.min_version is None:
            return True
        current = ModuleVersion.try_parse(installed.version)
        if current is None:
            return False
        return current >= spec.min_version
