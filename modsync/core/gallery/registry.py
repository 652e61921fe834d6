"""模块仓库查询客户端

职责:
- 按模块名查询仓库中的最新版本（OData v2 Atom 源）
- 客户端二次过滤，去掉服务端子串匹配带来的误命中
- 提取版本、下载地址、依赖声明、发布者

查询失败的处理方式由调用方通过 strict 参数决定:
  - 依赖导入路径 strict=True，失败即抛出 RegistryQueryError
  - strict=False 时失败只记录告警并返回 None
  - 仓库地址协议不合法属于配置错误，构造客户端时抛出 ValidationError
"""

from __future__ import annotations

import fnmatch
import logging
import xml.etree.ElementTree as ET  # nosec B405
from typing import Callable
from urllib.parse import quote

from modsync.core.exceptions import RegistryQueryError
from modsync.core.gallery.models import ModuleDescriptor
from modsync.utils.net import DEFAULT_TIMEOUT, HttpError, fetch_bytes, validate_url_scheme

logger = logging.getLogger(__name__)

_NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "m": "http://schemas.microsoft.com/ado/2007/08/dataservices/metadata",
    "d": "http://schemas.microsoft.com/ado/2007/08/dataservices",
}

SEARCH_PAGE_SIZE = 40


class RegistryClient:
    """模块仓库客户端"""

    def __init__(
        self,
        gallery_url: str,
        *,
        fetch: Callable[[str], bytes] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        # 仓库地址配置错误属于致命的配置问题，构造时即失败，不受 strict 影响
        validate_url_scheme(gallery_url, context="gallery_url")
        self.gallery_url = gallery_url.rstrip("/")
        self.timeout = timeout
        self._fetch = fetch or self._http_fetch

    def _http_fetch(self, url: str) -> bytes:
        return fetch_bytes(url, timeout=self.timeout)

    def search_url(self, name: str) -> str:
        # 通配符原样交给服务端的子串过滤
        term = quote(name, safe="*")
        return (
            f"{self.gallery_url}/Search()?$filter=IsLatestVersion"
            f"&searchTerm='{term}'&targetFramework=''"
            f"&includePrerelease=false&$skip=0&$top={SEARCH_PAGE_SIZE}"
        )

    def package_url(self, name: str, version: str) -> str:
        """指定版本的包内容地址"""
        return f"{self.gallery_url}/package/{quote(name)}/{quote(version)}"

    def find_module(self, name: str, *, strict: bool = True) -> ModuleDescriptor | None:
        """查询模块最新版本，仓库中不存在时返回 None

        strict 只决定网络错误和响应解析失败的处理方式；仓库地址的协议校验在构造时完成，
        ValidationError 不会在这里被吞掉。

        Raises:
            RegistryQueryError: 仅 strict=True 时，网络错误或响应无法解析
        """
        url = self.search_url(name)
        try:
            body = self._fetch(url)
            entries = self._parse_feed(body)
        except (HttpError, ET.ParseError) as e:
            if strict:
                raise RegistryQueryError(f"查询模块仓库失败: {name} - {e}") from e
            logger.warning("查询模块仓库失败，跳过 %s: %s", name, e)
            return None

        candidates = [
            d for d in entries if fnmatch.fnmatchcase(d.name.lower(), name.lower())
        ]
        if len(candidates) > 1:
            candidates = [d for d in candidates if d.name.lower() == name.lower()]
        if not candidates:
            logger.info("模块仓库中未找到 %s（可能是私有或手动上传的模块）", name)
            return None
        if len(candidates) > 1:
            logger.warning(
                "仓库中有 %d 个同名的最新版本条目，使用第一个: %s",
                len(candidates), name,
            )

        found = candidates[0]
        logger.debug("仓库命中: %s@%s owners=%s", found.name, found.version, found.owners)
        return found

    @staticmethod
    def _parse_feed(body: bytes) -> list[ModuleDescriptor]:
        """解析 Atom 源，提取每个 entry 的模块元信息"""
        root = ET.fromstring(body)  # nosec B314
        if root.tag == f"{{{_NS['atom']}}}entry":
            nodes = [root]
        else:
            nodes = root.findall("atom:entry", _NS)

        results: list[ModuleDescriptor] = []
        for entry in nodes:
            title = (entry.findtext("atom:title", "", _NS) or "").strip()
            if not title:
                continue
            content = entry.find("atom:content", _NS)
            content_url = content.get("src", "") if content is not None else ""
            props = entry.find("m:properties", _NS)

            def prop(field: str, props=props) -> str:
                if props is None:
                    return ""
                return (props.findtext(f"d:{field}", "", _NS) or "").strip()

            owners = prop("Owners") or (
                entry.findtext("atom:author/atom:name", "", _NS) or ""
            ).strip()
            results.append(ModuleDescriptor(
                name=title,
                version=prop("Version") or prop("NormalizedVersion"),
                content_url=content_url,
                dependencies=prop("Dependencies"),
                owners=owners,
            ))
        return results
