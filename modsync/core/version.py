"""模块版本号解析与比较

仓库中的版本号形如 2.12.1 或 3.0.0-preview。依赖声明里的版本表达式
可能带有区间括号（如 "[2.12.1" 或 "2.0)"），解析时会剥掉这些括号，
其余不符合格式的输入一律拒绝，而不是退化成一个不可靠的比较值。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import total_ordering

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+(?:\.\d+)*)(?:-([0-9A-Za-z][0-9A-Za-z.-]*))?$")
_RANGE_CHARS = "[]() \t"


@total_ordering
@dataclass(frozen=True, eq=False)
class ModuleVersion:
    """可比较的版本号: 数字段 + 可选预发布标签"""

    release: tuple[int, ...]
    prerelease: str = ""

    @classmethod
    def parse(cls, text: str) -> ModuleVersion:
        """解析版本字符串

        Raises:
            ValueError: 版本格式无效
        """
        cleaned = (text or "").strip(_RANGE_CHARS)
        m = _VERSION_RE.match(cleaned)
        if not m:
            raise ValueError(f"无效的版本号: {text!r}")
        release = tuple(int(part) for part in m.group(1).split("."))
        return cls(release=release, prerelease=m.group(2) or "")

    @classmethod
    def try_parse(cls, text: str) -> ModuleVersion | None:
        """解析失败时记录告警并返回 None"""
        try:
            return cls.parse(text)
        except ValueError:
            logger.warning("忽略无法解析的版本号: %r", text)
            return None

    def _key(self) -> tuple[tuple[int, ...], int, str]:
        # 去掉末尾的零，使 1.5 与 1.5.0 相等
        trimmed = self.release
        while len(trimmed) > 1 and trimmed[-1] == 0:
            trimmed = trimmed[:-1]
        # 正式版排在同号预发布版之后
        return trimmed, 0 if self.prerelease else 1, self.prerelease

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModuleVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: ModuleVersion) -> bool:
        if not isinstance(other, ModuleVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = ".".join(str(p) for p in self.release)
        return f"{text}-{self.prerelease}" if self.prerelease else text
