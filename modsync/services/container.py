"""服务容器 — 统一依赖注入

CLI 通过容器获取服务，同一容器内的实例共享同一份 Config。

依赖关系（→ 表示依赖）:
  sync     → registry, account, resolver
  resolver → registry, account, locator, importer
  importer → account

用法:
    container = ServiceContainer(config=Config.from_file("configs/prod.yml"))
    report = container.sync.run(update_azure_only=True)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modsync.core.account.client import AutomationAccountClient
    from modsync.core.config import Config
    from modsync.core.gallery.locator import ArtifactLocator
    from modsync.core.gallery.registry import RegistryClient
    from modsync.services.importer import ImportOrchestrator
    from modsync.services.resolver import DependencyResolver
    from modsync.services.sync_service import SyncService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from modsync.core.config import get_config
            config = get_config()
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    @property
    def registry(self) -> RegistryClient:
        if "registry" not in self._instances:
            from modsync.core.gallery.registry import RegistryClient
            self._instances["registry"] = RegistryClient(
                self._config.gallery_url, timeout=self._config.http_timeout,
            )
        return self._instances["registry"]  # type: ignore[return-value]

    @property
    def locator(self) -> ArtifactLocator:
        if "locator" not in self._instances:
            from modsync.core.gallery.locator import ArtifactLocator
            self._instances["locator"] = ArtifactLocator(
                archive_suffix=self._config.archive_suffix,
                max_redirects=self._config.max_redirects,
                timeout=self._config.http_timeout,
            )
        return self._instances["locator"]  # type: ignore[return-value]

    @property
    def account(self) -> AutomationAccountClient:
        if "account" not in self._instances:
            from modsync.core.account.auth import build_token_provider
            from modsync.core.account.client import AutomationAccountClient
            cfg = self._config
            cfg.validate()
            self._instances["account"] = AutomationAccountClient(
                subscription_id=cfg.subscription_id,
                resource_group=cfg.resource_group,
                account_name=cfg.automation_account,
                token_provider=build_token_provider(cfg),
                runtime_version=cfg.runtime_version,
                management_url=cfg.management_url,
                api_version=cfg.api_version,
                timeout=cfg.http_timeout,
            )
        return self._instances["account"]  # type: ignore[return-value]

    @property
    def importer(self) -> ImportOrchestrator:
        if "importer" not in self._instances:
            from modsync.services.importer import ImportOrchestrator
            self._instances["importer"] = ImportOrchestrator(
                self.account,
                poll_interval=self._config.poll_interval,
                max_polls=self._config.max_polls,
            )
        return self._instances["importer"]  # type: ignore[return-value]

    @property
    def resolver(self) -> DependencyResolver:
        if "resolver" not in self._instances:
            from modsync.services.resolver import DependencyResolver
            self._instances["resolver"] = DependencyResolver(
                self.registry, self.account, self.locator, self.importer,
            )
        return self._instances["resolver"]  # type: ignore[return-value]

    @property
    def sync(self) -> SyncService:
        if "sync" not in self._instances:
            from modsync.services.sync_service import SyncService
            self._instances["sync"] = SyncService(
                self.registry, self.account, self.resolver,
                sdk_owner=self._config.sdk_owner,
                max_depth=self._config.max_depth,
                version_overrides=self._config.module_version_overrides,
            )
        return self._instances["sync"]  # type: ignore[return-value]


# 全局容器，由 CLI 入口按配置文件创建
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    global _container  # noqa: PLW0603
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container(config: Config | None = None) -> ServiceContainer:
    """按新配置重建全局容器"""
    global _container  # noqa: PLW0603
    _container = ServiceContainer(config)
    return _container
