"""Canonical descriptions of Nix option types.

``normalize`` turns a type expression such as ``types.nullOr (types.listOf
types.str)`` into ``null or list of string``. Anything it cannot read falls
back to the whitespace-collapsed source text, prefixed with
:data:`RAW_TYPE_PREFIX` and flagged as unrecognized.
"""

from __future__ import annotations

import json
import re
from typing import Callable, Dict, Optional, Sequence

from ..models import TypeDescriptor
from ..syntax.literals import string_value
from ..syntax.nodes import Apply, Expr, ListExpr, Literal, Select, Str, Var, With, dotted_name, flatten_apply

RAW_TYPE_PREFIX = "raw: "
MAX_RAW_LENGTH = 72

_QUALIFIERS = ("lib.types.", "types.")
_WHITESPACE = re.compile(r"\s+")

_LEAF_TYPES: Dict[str, str] = {
    "bool": "boolean",
    "boolean": "boolean",
    "str": "string",
    "string": "string",
    "nonEmptyStr": "non-empty string",
    "singleLineStr": "single-line string",
    "lines": "strings concatenated with \"\\n\"",
    "commas": "strings concatenated with \",\"",
    "envVar": "strings concatenated with \":\"",
    "int": "integer",
    "integer": "integer",
    "ints.positive": "positive integer",
    "ints.unsigned": "unsigned integer",
    "ints.u8": "8 bit unsigned integer",
    "ints.u16": "16 bit unsigned integer",
    "ints.u32": "32 bit unsigned integer",
    "ints.s8": "8 bit signed integer",
    "ints.s16": "16 bit signed integer",
    "ints.s32": "32 bit signed integer",
    "port": "16 bit unsigned integer",
    "float": "float",
    "number": "number",
    "numbers.positive": "positive number",
    "numbers.nonnegative": "non-negative number",
    "path": "path",
    "pathInStore": "path in the Nix store",
    "package": "package",
    "attrs": "attribute set",
    "anything": "anything",
    "unspecified": "unspecified value",
    "raw": "raw value",
    "deferredModule": "module",
    "optionType": "option type",
    "submodule": "submodule",
}


def normalize(expr: Expr) -> TypeDescriptor:
    """Return the canonical descriptor for a type expression. Never raises."""
    text = _describe(expr)
    if text is None:
        return _fallback(expr)
    return TypeDescriptor(text=text, raw=expr.text)


def type_name(expr: Expr) -> Optional[str]:
    """Return the unqualified constructor name heading ``expr``, if it has one."""
    if isinstance(expr, With):
        return type_name(expr.body)
    head, _ = flatten_apply(expr)
    dotted = dotted_name(head)
    if dotted is None:
        return None
    for qualifier in _QUALIFIERS:
        if dotted.startswith(qualifier):
            return dotted[len(qualifier) :]
    return dotted


def is_type_expression(expr: Expr) -> bool:
    """True when ``expr`` reads as a type from ``lib.types``."""
    if isinstance(expr, With):
        return is_type_expression(expr.body)
    head, _ = flatten_apply(expr)
    dotted = dotted_name(head)
    if dotted is None:
        return False
    if dotted.startswith(_QUALIFIERS):
        return True
    name = type_name(expr)
    return name in _LEAF_TYPES or name in _CONSTRUCTORS


def _fallback(expr: Expr) -> TypeDescriptor:
    collapsed = _WHITESPACE.sub(" ", expr.text).strip()
    if len(collapsed) > MAX_RAW_LENGTH:
        collapsed = collapsed[: MAX_RAW_LENGTH - 3].rstrip() + "..."
    return TypeDescriptor(text=f"{RAW_TYPE_PREFIX}{collapsed}", raw=expr.text, recognized=False)


def _describe(expr: Expr) -> Optional[str]:
    if isinstance(expr, With):
        return _describe(expr.body)
    if not isinstance(expr, (Var, Select, Apply)):
        return None
    name = type_name(expr)
    if name is None:
        return None
    _, args = flatten_apply(expr)
    if not args:
        return _LEAF_TYPES.get(name)
    constructor = _CONSTRUCTORS.get(name)
    if constructor is None:
        return None
    return constructor(args)


def _unary(template: str) -> Callable[[Sequence[Expr]], Optional[str]]:
    def _build(args: Sequence[Expr]) -> Optional[str]:
        if len(args) != 1:
            return None
        inner = _describe(args[0])
        return template.format(inner) if inner is not None else None

    return _build


def _last_arg(args: Sequence[Expr]) -> Optional[str]:
    # unique { message = ...; } t
    return _describe(args[-1])


def _add_check(args: Sequence[Expr]) -> Optional[str]:
    if len(args) != 2:
        return None
    return _describe(args[0])


def _either(args: Sequence[Expr]) -> Optional[str]:
    if len(args) != 2:
        return None
    return _join_alternatives(args)


def _one_of(args: Sequence[Expr]) -> Optional[str]:
    if len(args) != 1 or not isinstance(args[0], ListExpr) or not args[0].items:
        return None
    return _join_alternatives(args[0].items)


def _join_alternatives(options: Sequence[Expr]) -> Optional[str]:
    described = [_describe(option) for option in options]
    if any(text is None for text in described):
        return None
    return " or ".join(described)  # type: ignore[arg-type]


def _enum(args: Sequence[Expr]) -> Optional[str]:
    if len(args) != 1 or not isinstance(args[0], ListExpr):
        return None
    values = [_enum_value(item) for item in args[0].items]
    if not values:
        return "impossible (empty enum)"
    return "one of " + ", ".join(values)


def _enum_value(item: Expr) -> str:
    if isinstance(item, Str):
        return json.dumps(string_value(item))
    return _WHITESPACE.sub(" ", item.text).strip()


def _submodule(args: Sequence[Expr]) -> Optional[str]:
    return "submodule" if len(args) == 1 else None


def _coerced_to(args: Sequence[Expr]) -> Optional[str]:
    if len(args) != 3:
        return None
    source = _describe(args[0])
    target = _describe(args[2])
    if source is None or target is None:
        return None
    return f"{target} or {source} convertible to it"


def _str_matching(args: Sequence[Expr]) -> Optional[str]:
    if len(args) != 1 or not isinstance(args[0], Str):
        return None
    return f"string matching the pattern {string_value(args[0])}"


def _separated_string(args: Sequence[Expr]) -> Optional[str]:
    if len(args) != 1 or not isinstance(args[0], Str):
        return None
    return f"strings concatenated with {json.dumps(string_value(args[0]))}"


def _between(kind: str) -> Callable[[Sequence[Expr]], Optional[str]]:
    def _build(args: Sequence[Expr]) -> Optional[str]:
        if len(args) != 2 or not all(isinstance(arg, Literal) for arg in args):
            return None
        low, high = (arg.text for arg in args)
        return f"{kind} between {low} and {high} (both inclusive)"

    return _build


_CONSTRUCTORS: Dict[str, Callable[[Sequence[Expr]], Optional[str]]] = {
    "nullOr": _unary("null or {}"),
    "listOf": _unary("list of {}"),
    "nonEmptyListOf": _unary("non-empty list of {}"),
    "attrsOf": _unary("attribute set of {}"),
    "lazyAttrsOf": _unary("lazy attribute set of {}"),
    "functionTo": _unary("function that evaluates to a(n) {}"),
    "uniq": _unary("{}"),
    "unique": _last_arg,
    "addCheck": _add_check,
    "either": _either,
    "oneOf": _one_of,
    "enum": _enum,
    "submodule": _submodule,
    "submoduleWith": _submodule,
    "coercedTo": _coerced_to,
    "strMatching": _str_matching,
    "separatedString": _separated_string,
    "ints.between": _between("integer"),
    "numbers.between": _between("number"),
}

__all__ = ["MAX_RAW_LENGTH", "RAW_TYPE_PREFIX", "is_type_expression", "normalize", "type_name"]
