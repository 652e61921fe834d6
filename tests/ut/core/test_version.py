"""版本号解析与比较测试"""

import pytest

from modsync.core.version import ModuleVersion


class TestParse:
    @pytest.mark.parametrize("text,release,pre", [
        ("1.0.0", (1, 0, 0), ""),
        ("2.12.1", (2, 12, 1), ""),
        ("[2.12.1", (2, 12, 1), ""),
        (" 3.0 ", (3, 0), ""),
        ("v4.1", (4, 1), ""),
        ("1.0.0-preview", (1, 0, 0), "preview"),
        ("5.0)", (5, 0), ""),
    ])
    def test_valid(self, text: str, release: tuple, pre: str) -> None:
        v = ModuleVersion.parse(text)
        assert v.release == release
        assert v.prerelease == pre

    @pytest.mark.parametrize("text", ["", "abc", "1..2", "1.x", "latest"])
    def test_invalid_raises(self, text: str) -> None:
        with pytest.raises(ValueError, match="无效的版本号"):
            ModuleVersion.parse(text)

    def test_try_parse_returns_none(self) -> None:
        assert ModuleVersion.try_parse("not-a-version") is None
        assert ModuleVersion.try_parse("1.2") == ModuleVersion.parse("1.2.0")


class TestOrdering:
    def test_numeric_not_lexical(self) -> None:
        assert ModuleVersion.parse("1.10.0") > ModuleVersion.parse("1.9.0")
        assert ModuleVersion.parse("10.0") > ModuleVersion.parse("9.9.9")

    def test_trailing_zeros_equal(self) -> None:
        assert ModuleVersion.parse("1.5") == ModuleVersion.parse("1.5.0")
        assert hash(ModuleVersion.parse("1.5")) == hash(ModuleVersion.parse("1.5.0.0"))

    def test_prerelease_below_release(self) -> None:
        assert ModuleVersion.parse("2.0.0-preview") < ModuleVersion.parse("2.0.0")
        assert ModuleVersion.parse("2.0.0-preview") > ModuleVersion.parse("1.9.9")

    def test_str(self) -> None:
        assert str(ModuleVersion.parse("[1.2.3")) == "1.2.3"
        assert str(ModuleVersion.parse("1.0-beta")) == "1.0-beta"
