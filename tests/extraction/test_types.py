"""Tests for type expression normalization."""

from __future__ import annotations

from nixopts.extraction.types import MAX_RAW_LENGTH, RAW_TYPE_PREFIX, is_type_expression, normalize, type_name
from tests._fixtures.nix import apply, attrs, bind, lib_types, lit, lst, string, types, var, with_


def test_leaf_types_are_named() -> None:
    assert normalize(types("bool")).text == "boolean"
    assert normalize(types("str")).text == "string"
    assert normalize(lib_types("int")).text == "integer"
    assert normalize(types("port")).text == "16 bit unsigned integer"


def test_nested_constructors_recurse() -> None:
    expr = apply("types.nullOr", apply("types.listOf", types("str")))
    descriptor = normalize(expr)
    assert descriptor.text == "null or list of string"
    assert descriptor.recognized is True
    assert descriptor.raw == "types.nullOr (types.listOf types.str)"


def test_with_wrapper_and_unqualified_names() -> None:
    expr = with_("lib.types", apply("attrsOf", apply("nullOr", var("str"))))
    assert normalize(expr).text == "attribute set of null or string"


def test_enum_either_and_one_of() -> None:
    assert normalize(apply("types.enum", lst(string("http"), string("https")))).text == 'one of "http", "https"'
    assert normalize(apply("types.either", types("str"), types("int"))).text == "string or integer"
    one_of = apply("types.oneOf", lst(types("str"), types("int"), types("bool")))
    assert normalize(one_of).text == "string or integer or boolean"


def test_ranges_and_submodules() -> None:
    between = apply("types.ints.between", lit("1"), lit("10"))
    assert normalize(between).text == "integer between 1 and 10 (both inclusive)"
    submodule = apply("types.submodule", attrs(bind("options", attrs())))
    assert normalize(submodule).text == "submodule"


def test_unknown_type_falls_back_to_raw_text() -> None:
    descriptor = normalize(types("somethingNew"))
    assert descriptor.recognized is False
    assert descriptor.text == f"{RAW_TYPE_PREFIX}types.somethingNew"


def test_unknown_argument_makes_whole_expression_raw() -> None:
    descriptor = normalize(apply("types.listOf", var("myCustomType")))
    assert descriptor.recognized is False
    assert descriptor.text == "raw: types.listOf myCustomType"


def test_wrong_argument_count_falls_back() -> None:
    descriptor = normalize(apply("types.nullOr", types("str"), types("int")))
    assert descriptor.recognized is False


def test_long_raw_text_is_collapsed_and_truncated() -> None:
    members = [string(f"value-number-{index}") for index in range(12)]
    expr = apply("types.customEnum", lst(*members))
    descriptor = normalize(expr)
    body = descriptor.text[len(RAW_TYPE_PREFIX) :]
    assert len(body) == MAX_RAW_LENGTH
    assert body.endswith("...")
    assert "\n" not in body


def test_normalize_is_pure() -> None:
    expr = apply("types.nullOr", apply("types.attrsOf", types("package")))
    assert normalize(expr) == normalize(expr)


def test_type_expression_detection() -> None:
    assert is_type_expression(types("str"))
    assert is_type_expression(apply("types.listOf", types("str")))
    assert is_type_expression(with_("lib.types", var("bool")))
    assert not is_type_expression(var("config"))
    assert not is_type_expression(string("types.str"))
    assert type_name(lib_types("ints.u8")) == "ints.u8"
