"""包下载地址定位

仓库返回的内容地址往往是间接的（/package/<name>/<version>），
需要逐跳读取重定向目标，直到拿到以包后缀（.nupkg）结尾的真实地址。
"""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import urljoin

from modsync.core.exceptions import OperationTimeoutError
from modsync.utils.net import DEFAULT_TIMEOUT, HttpError, probe_redirect

logger = logging.getLogger(__name__)


class ArtifactLocator:
    """跟随重定向链定位最终的包地址"""

    def __init__(
        self,
        *,
        archive_suffix: str = ".nupkg",
        max_redirects: int = 10,
        probe: Callable[[str], str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.archive_suffix = archive_suffix.lower()
        self.max_redirects = max_redirects
        self.timeout = timeout
        self._probe = probe or self._http_probe

    def _http_probe(self, url: str) -> str:
        return probe_redirect(url, timeout=self.timeout)

    def is_archive(self, url: str) -> bool:
        path = url.split("?", 1)[0].split("#", 1)[0]
        return bool(path) and path.lower().endswith(self.archive_suffix)

    def resolve(self, start_url: str) -> str:
        """返回最终包地址；链条中断时返回最后一个可用地址，起点为空时返回空串

        Raises:
            OperationTimeoutError: 超过 max_redirects 跳仍未到达包地址
        """
        current = (start_url or "").strip()
        if not current:
            return ""

        for hop in range(self.max_redirects + 1):
            if self.is_archive(current):
                if hop:
                    logger.debug("包地址定位完成 (%d 跳): %s", hop, current)
                return current
            if hop == self.max_redirects:
                break
            try:
                location = self._probe(current)
            except HttpError as e:
                logger.warning("重定向探测失败，沿用上一个地址 %s: %s", current, e)
                return current
            if not location:
                logger.warning("地址未重定向到包文件，沿用: %s", current)
                return current
            current = urljoin(current, location.strip())

        raise OperationTimeoutError(
            f"重定向超过 {self.max_redirects} 跳仍未到达包地址: {start_url}"
        )
