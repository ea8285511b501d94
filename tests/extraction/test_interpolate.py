"""Tests for ${name} substitution."""

from __future__ import annotations

import pytest

from nixopts.extraction.interpolate import UnboundVariableError, placeholders, substitute


def test_bound_placeholders_are_replaced() -> None:
    assert substitute("${namespace}.enable", {"namespace": "services.foo"}) == "services.foo.enable"


def test_unbound_placeholders_pass_through() -> None:
    text = "${a} and ${b}"
    assert substitute(text, {"a": "x"}) == "x and ${b}"
    assert substitute(text, {}) == text


def test_strict_mode_raises_on_unbound() -> None:
    with pytest.raises(UnboundVariableError) as excinfo:
        substitute("prefix.${missing}", {"other": "value"}, strict=True)
    assert excinfo.value.name == "missing"
    assert str(excinfo.value) == "no replacement given for ${missing}"


def test_strict_mode_accepts_fully_bound_text() -> None:
    assert substitute("${a}.${b}", {"a": "x", "b": "y"}, strict=True) == "x.y"


def test_placeholders_in_order() -> None:
    assert placeholders("${one}-${two}-${one}") == ["one", "two", "one"]
