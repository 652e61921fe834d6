"""访问令牌获取

两种方式:
  - token: 直接使用配置 / MODSYNC_ACCESS_TOKEN 中的令牌
  - managed_identity: 通过作业沙箱提供的托管标识端点换取令牌
"""

from __future__ import annotations

import logging
import os
from typing import Callable
from urllib.parse import quote

from modsync.core.config import Config
from modsync.core.exceptions import AuthenticationError
from modsync.utils.net import HttpError, request_json

logger = logging.getLogger(__name__)

IDENTITY_API_VERSION = "2019-08-01"


class ManagedIdentityToken:
    """托管标识令牌，首次调用时获取并缓存"""

    def __init__(self, resource: str, *, timeout: float = 30.0) -> None:
        self.resource = resource
        self.timeout = timeout
        self._token = ""

    def __call__(self) -> str:
        if self._token:
            return self._token
        endpoint = os.getenv("IDENTITY_ENDPOINT", "")
        secret = os.getenv("IDENTITY_HEADER", "")
        if not endpoint or not secret:
            raise AuthenticationError(
                "托管标识不可用: 未设置 IDENTITY_ENDPOINT / IDENTITY_HEADER"
            )
        url = (
            f"{endpoint}?resource={quote(self.resource, safe='')}"
            f"&api-version={IDENTITY_API_VERSION}"
        )
        try:
            data = request_json(
                url, headers={"X-IDENTITY-HEADER": secret}, timeout=self.timeout,
            )
        except HttpError as e:
            raise AuthenticationError(f"获取托管标识令牌失败: {e}") from e
        token = data.get("access_token", "")
        if not token:
            raise AuthenticationError("托管标识端点未返回 access_token")
        logger.info("已通过托管标识获取访问令牌")
        self._token = token
        return token


def build_token_provider(cfg: Config) -> Callable[[], str]:
    """按配置的认证方式返回令牌提供函数"""
    if cfg.auth_mode == "managed_identity":
        return ManagedIdentityToken(cfg.management_url.rstrip("/") + "/")

    def static_token() -> str:
        if not cfg.access_token:
            raise AuthenticationError(
                "未配置访问令牌: 请设置 access_token 或 MODSYNC_ACCESS_TOKEN"
            )
        return cfg.access_token

    return static_token
