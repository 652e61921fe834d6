"""ServiceContainer 单元测试"""

from __future__ import annotations

import pytest

from modsync.core.config import Config
from modsync.core.exceptions import ConfigError
from modsync.services.container import ServiceContainer, get_container, reset_container


def _cfg(**overrides) -> Config:
    base = dict(subscription_id="sub", resource_group="rg", automation_account="acct",
                access_token="tok", max_redirects=4, poll_interval=1.5)
    base.update(overrides)
    return Config(**base)


class TestServiceContainer:
    def test_lazy_and_shared(self) -> None:
        c = ServiceContainer(_cfg())
        assert c.registry is c.registry
        assert c.resolver is c.resolver
        assert c.sync is c.sync

    def test_config_flows_into_services(self) -> None:
        c = ServiceContainer(_cfg(runtime_version="7.2", gallery_url="https://g.test/api/v2/"))
        assert c.locator.max_redirects == 4
        assert c.importer.poll_interval == 1.5
        assert c.registry.gallery_url == "https://g.test/api/v2"
        assert c.account.runtime_version == "7.2"

    def test_account_requires_identity(self) -> None:
        c = ServiceContainer(Config())
        with pytest.raises(ConfigError):
            _ = c.account

    def test_reset_global(self) -> None:
        cfg = _cfg()
        container = reset_container(cfg)
        assert get_container() is container
        assert container.config is cfg
