"""依赖声明解析

仓库返回的依赖字段是以 "|" 分隔的条目，每条形如 "名称:版本表达式:目标框架"。
版本表达式可能是单个版本，也可能是区间 "[1.0, 2.0)" / "[1.0, )"，
这里只取逗号前的第一个版本作为最低版本。
"""

from __future__ import annotations

import logging

from modsync.core.gallery.models import DependencySpec
from modsync.core.version import ModuleVersion

logger = logging.getLogger(__name__)


def parse_dependencies(raw: str) -> list[DependencySpec]:
    """解析原始依赖字段，保持声明顺序

    空条目跳过；缺少冒号的条目记录告警后跳过；
    版本表达式为空或无法解析时 min_version 为 None。
    """
    specs: list[DependencySpec] = []
    for entry in (raw or "").split("|"):
        entry = entry.strip()
        if not entry:
            continue
        if ":" not in entry:
            logger.warning("跳过格式错误的依赖声明（缺少冒号）: %r", entry)
            continue

        name, _, rest = entry.partition(":")
        name = name.strip()
        if not name:
            logger.warning("跳过缺少模块名的依赖声明: %r", entry)
            continue

        version_expr = rest.split(":", 1)[0]
        first = version_expr.split(",", 1)[0].strip()
        min_version = ModuleVersion.try_parse(first) if first.strip("[]()") else None
        specs.append(DependencySpec(name=name, min_version=min_version))
    return specs
