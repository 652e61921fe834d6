"""集中配置管理

同步引擎的全部可调参数集中在 Config 中，支持从 YAML 文件加载 + 环境变量覆盖。
账户身份和认证方式由外部（作业参数 / 配置文件）给出，这里只负责承载和校验。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field

from modsync.core.exceptions import ConfigError
from modsync.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "configs/default.yml"

RUNTIME_VERSIONS = ("5.1", "7.2")
AUTH_MODES = ("token", "managed_identity")


@dataclass
class Config:
    """同步引擎全局配置"""

    # 目标账户
    subscription_id: str = ""
    resource_group: str = ""
    automation_account: str = ""
    runtime_version: str = "5.1"

    # 认证
    auth_mode: str = "token"
    access_token: str = ""

    # 端点
    gallery_url: str = "https://www.powershellgallery.com/api/v2"
    management_url: str = "https://management.azure.com"
    api_version: str = "2019-06-01"

    # 同步策略
    sdk_owner: str = "azure-sdk"
    archive_suffix: str = ".nupkg"
    max_depth: int = 5
    max_redirects: int = 10
    poll_interval: float = 5.0
    max_polls: int = 120
    http_timeout: float = 60.0
    module_version_overrides: dict[str, str] = field(default_factory=dict)

    # 放不到字段里的配置项
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认；环境变量中的令牌优先"""
        data = load_yaml(path)
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        cfg.module_version_overrides = {
            str(k): str(v) for k, v in (cfg.module_version_overrides or {}).items()
        }
        token = os.getenv("MODSYNC_ACCESS_TOKEN", "")
        if token:
            cfg.access_token = token
        return cfg

    def validate(self) -> None:
        """校验访问目标账户所需的配置项"""
        missing = [
            name for name in ("subscription_id", "resource_group", "automation_account")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"缺少目标账户配置: {', '.join(missing)}")
        if self.runtime_version not in RUNTIME_VERSIONS:
            raise ConfigError(
                f"不支持的运行时版本 '{self.runtime_version}'，"
                f"可选: {', '.join(RUNTIME_VERSIONS)}"
            )
        if self.auth_mode not in AUTH_MODES:
            raise ConfigError(
                f"不支持的认证方式 '{self.auth_mode}'，可选: {', '.join(AUTH_MODES)}"
            )
        if self.max_depth < 0 or self.max_redirects < 1 or self.max_polls < 1:
            raise ConfigError("max_depth 不能为负，max_redirects / max_polls 至少为 1")

    def to_dict(self) -> dict:
        data = asdict(self)
        if data.get("access_token"):
            data["access_token"] = "***"
        return data


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "") -> Config:
    """从文件初始化全局配置，路径缺省时读取 MODSYNC_CONFIG 环境变量"""
    global _current  # noqa: PLW0603
    path = path or os.getenv("MODSYNC_CONFIG", DEFAULT_CONFIG_FILE)
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
