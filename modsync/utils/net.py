"""网络工具 — URL 安全校验 + 基于 urllib 的 HTTP 调用

所有对模块仓库和目标账户的请求都经过这里，统一:
  - 只允许 http/https 协议
  - 超时设置
  - urllib 异常转换为 HttpError
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any
from urllib.parse import urlparse

from modsync.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))
_REDIRECT_CODES = frozenset((301, 302, 303, 307, 308))

DEFAULT_TIMEOUT = 60


class HttpError(ConnectionError):
    """HTTP 请求失败（网络不可达或服务端返回错误状态码）"""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def fetch_bytes(
    url: str, *, headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """GET 请求，返回原始响应体"""
    validate_url_scheme(url, context="fetch")
    req = urllib.request.Request(url, headers=headers or {})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
            return resp.read()
    except urllib.error.HTTPError as e:
        raise HttpError(f"HTTP 错误 {e.code}: {url}", status=e.code) from e
    except (urllib.error.URLError, OSError) as e:
        raise HttpError(f"网络错误: {url} - {e}") from e


def request_json(
    url: str, *, method: str = "GET",
    payload: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """发送 JSON 请求并解析 JSON 响应，空响应体返回空字典"""
    validate_url_scheme(url, context=f"{method} request")
    body = None
    all_headers = {"Accept": "application/json"}
    if headers:
        all_headers.update(headers)
    if payload is not None:
        body = json.dumps(payload).encode("utf-8")
        all_headers["Content-Type"] = "application/json"

    req = urllib.request.Request(url, data=body, method=method, headers=all_headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
            raw = resp.read()
    except urllib.error.HTTPError as e:
        detail = ""
        try:
            detail = e.read().decode("utf-8", errors="replace")[:500]
        except OSError:
            pass
        raise HttpError(
            f"HTTP 错误 {e.code}: {method} {url} {detail}".rstrip(),
            status=e.code,
        ) from e
    except (urllib.error.URLError, OSError) as e:
        raise HttpError(f"网络错误: {method} {url} - {e}") from e

    if not raw.strip():
        return {}
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HttpError(f"响应格式错误: {method} {url} - {e}") from e
    if not isinstance(data, dict):
        raise HttpError(f"响应不是 JSON 对象: {method} {url}")
    return data


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    """拒绝跟随重定向，让 3xx 以 HTTPError 形式返回给调用方"""

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # noqa: ANN001
        return None


def probe_redirect(url: str, *, timeout: float = DEFAULT_TIMEOUT) -> str:
    """请求 URL 但不跟随重定向，返回 Location 头（无重定向时返回空串）

    Raises:
        HttpError: 网络错误或非重定向的错误状态码
    """
    validate_url_scheme(url, context="redirect probe")
    opener = urllib.request.build_opener(_NoRedirectHandler)
    req = urllib.request.Request(url, method="GET")
    try:
        with opener.open(req, timeout=timeout) as resp:  # nosec B310
            return resp.headers.get("Location", "") or ""
    except urllib.error.HTTPError as e:
        if e.code in _REDIRECT_CODES:
            return e.headers.get("Location", "") or ""
        raise HttpError(f"HTTP 错误 {e.code}: {url}", status=e.code) from e
    except (urllib.error.URLError, OSError) as e:
        raise HttpError(f"网络错误: {url} - {e}") from e
