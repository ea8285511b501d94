"""Closed set of Nix syntax node variants consumed by the extraction engine.

The parser adapter converts a concrete syntax tree into these frozen
dataclasses. Every variant keeps the source text it covers and the position
where it starts, so callers can fall back to raw text for anything they do not
understand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union


@dataclass(frozen=True)
class Span:
    """1-based start position of a node."""

    line: int = 1
    column: int = 1


@dataclass(frozen=True)
class AttrName:
    """One segment of an attribute path.

    Dynamic names (``${expr}`` or strings with interpolation) keep their textual
    form since resolving them would require evaluation.
    """

    name: str
    dynamic: bool = False


@dataclass(frozen=True)
class Var:
    name: str
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Select:
    """``target.a.b`` with an optional ``or default``."""

    target: "Expr"
    attrs: Tuple[AttrName, ...]
    default: Optional["Expr"] = None
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Apply:
    function: "Expr"
    argument: "Expr"
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Binding:
    """``a.b.c = value;``"""

    attrs: Tuple[AttrName, ...]
    value: "Expr"
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Inherit:
    """``inherit a b;`` or ``inherit (source) a b;``"""

    attrs: Tuple[AttrName, ...]
    source: Optional["Expr"] = None
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class AttrSet:
    bindings: Tuple["BindingLike", ...]
    recursive: bool = False
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class LetIn:
    bindings: Tuple["BindingLike", ...]
    body: "Expr"
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class With:
    environment: "Expr"
    body: "Expr"
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Lambda:
    """Function expression; formals are irrelevant for extraction."""

    body: "Expr"
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class ListExpr:
    items: Tuple["Expr", ...]
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Str:
    """String literal; ``text`` includes the delimiters."""

    indented: bool = False
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Literal:
    """Integer, float, path or URI literal."""

    kind: str
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Other:
    """Any other compound expression (operators, conditionals, assertions)."""

    kind: str
    children: Tuple["Expr", ...] = ()
    span: Span = Span()
    text: str = ""


@dataclass(frozen=True)
class Error:
    """Region the parser could not understand."""

    span: Span = Span()
    text: str = ""


Expr = Union[Var, Select, Apply, AttrSet, LetIn, With, Lambda, ListExpr, Str, Literal, Other, Error]
BindingLike = Union[Binding, Inherit, Error]


def dotted_name(node: Expr) -> Optional[str]:
    """Return ``a.b.c`` for variable/selection chains with static names."""
    if isinstance(node, Var):
        return node.name
    if isinstance(node, Select):
        base = dotted_name(node.target)
        if base is None or any(attr.dynamic for attr in node.attrs):
            return None
        return ".".join([base, *(attr.name for attr in node.attrs)])
    return None


def flatten_apply(node: Expr) -> Tuple[Expr, Tuple[Expr, ...]]:
    """Split ``f a b c`` into ``(f, (a, b, c))``."""
    args = []
    current = node
    while isinstance(current, Apply):
        args.append(current.argument)
        current = current.function
    args.reverse()
    return current, tuple(args)


def iter_bindings(attrset: AttrSet) -> Iterator[Tuple[str, Expr]]:
    """Yield ``(name, value)`` for single-segment static bindings."""
    for binding in attrset.bindings:
        if isinstance(binding, Binding) and len(binding.attrs) == 1 and not binding.attrs[0].dynamic:
            yield binding.attrs[0].name, binding.value


__all__ = [
    "Apply",
    "AttrName",
    "AttrSet",
    "Binding",
    "BindingLike",
    "Error",
    "Expr",
    "Inherit",
    "Lambda",
    "LetIn",
    "ListExpr",
    "Literal",
    "Other",
    "Select",
    "Span",
    "Str",
    "Var",
    "With",
    "dotted_name",
    "flatten_apply",
    "iter_bindings",
]
