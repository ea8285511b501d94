"""Hand-built Nix syntax trees for extraction tests.

The helpers mirror what the tree-sitter adapter produces, including a
plausible ``text`` for every node, so tests do not need the grammar.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence, Tuple, Union

from nixopts.syntax.nodes import (
    Apply,
    AttrName,
    AttrSet,
    Binding,
    BindingLike,
    Error,
    Expr,
    Inherit,
    Lambda,
    LetIn,
    ListExpr,
    Literal,
    Other,
    Select,
    Span,
    Str,
    Var,
    With,
)

_PATH_SPLIT = re.compile(r"\.(?![^{]*\})")


def at(line: int, column: int = 1) -> Span:
    return Span(line=line, column=column)


def var(name: str, line: int = 1) -> Var:
    return Var(name, span=at(line), text=name)


def select(target: Union[Expr, str], *names: str, line: int = 1) -> Select:
    base = var(target, line) if isinstance(target, str) else target
    return Select(
        base,
        tuple(AttrName(name) for name in names),
        span=at(line),
        text=".".join([base.text, *names]),
    )


def dotted(name: str, line: int = 1) -> Expr:
    head, *rest = name.split(".")
    return select(head, *rest, line=line) if rest else var(head, line)


def _arg_text(node: Expr) -> str:
    if isinstance(node, (Apply, Lambda, With, LetIn)):
        return f"({node.text})"
    return node.text


def apply(function: Union[Expr, str], *args: Expr, line: int = 1) -> Expr:
    current = dotted(function, line) if isinstance(function, str) else function
    for arg in args:
        current = Apply(current, arg, span=at(line), text=f"{current.text} {_arg_text(arg)}")
    return current


def string(value: str, line: int = 1) -> Str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return Str(indented=False, span=at(line), text=f'"{escaped}"')


def indented(body: str, line: int = 1) -> Str:
    return Str(indented=True, span=at(line), text=f"''{body}''")


def lit(text: str, kind: str = "int", line: int = 1) -> Literal:
    return Literal(kind, span=at(line), text=text)


def raw(text: str, kind: str = "binary_expression", children: Sequence[Expr] = (), line: int = 1) -> Other:
    return Other(kind, tuple(children), span=at(line), text=text)


def error(text: str, line: int = 1, column: int = 1) -> Error:
    return Error(span=at(line, column), text=text)


def attr_names(path: Union[str, Sequence[str]]) -> Tuple[AttrName, ...]:
    segments = _PATH_SPLIT.split(path) if isinstance(path, str) else list(path)
    return tuple(AttrName(segment, dynamic="${" in segment) for segment in segments)


def bind(path: Union[str, Sequence[str]], value: Expr, line: Optional[int] = None) -> Binding:
    names = attr_names(path)
    rendered = ".".join(name.name for name in names)
    return Binding(names, value, span=at(line or value.span.line), text=f"{rendered} = {value.text};")


def inherit(*names: str, source: Optional[Expr] = None, line: int = 1) -> Inherit:
    prefix = f"inherit ({source.text})" if source is not None else "inherit"
    return Inherit(
        tuple(AttrName(name) for name in names),
        source=source,
        span=at(line),
        text=f"{prefix} {' '.join(names)};",
    )


def attrs(*bindings: BindingLike, recursive: bool = False, line: int = 1) -> AttrSet:
    body = " ".join(binding.text for binding in bindings)
    opener = "rec {" if recursive else "{"
    return AttrSet(tuple(bindings), recursive=recursive, span=at(line), text=f"{opener} {body} }}")


def let(bindings: Sequence[BindingLike], body: Expr, line: int = 1) -> LetIn:
    rendered = " ".join(binding.text for binding in bindings)
    return LetIn(tuple(bindings), body, span=at(line), text=f"let {rendered} in {body.text}")


def with_(environment: Union[Expr, str], body: Expr, line: int = 1) -> With:
    env = dotted(environment, line) if isinstance(environment, str) else environment
    return With(env, body, span=at(line), text=f"with {env.text}; {body.text}")


def lam(body: Expr, formals: str = "{ config, lib, pkgs, ... }", line: int = 1) -> Lambda:
    return Lambda(body, span=at(line), text=f"{formals}: {body.text}")


def lst(*items: Expr, line: int = 1) -> ListExpr:
    return ListExpr(tuple(items), span=at(line), text=f"[ {' '.join(_arg_text(item) for item in items)} ]")


def types(name: str, line: int = 1) -> Expr:
    return dotted(f"types.{name}", line)


def lib_types(name: str, line: int = 1) -> Expr:
    return dotted(f"lib.types.{name}", line)


def mk_option(*bindings: BindingLike, line: int = 1, function: str = "lib.mkOption") -> Expr:
    return apply(function, attrs(*bindings, line=line), line=line)


def mk_enable(description: str, line: int = 1) -> Expr:
    return apply("lib.mkEnableOption", string(description, line), line=line)


__all__ = [
    "apply",
    "at",
    "attr_names",
    "attrs",
    "bind",
    "dotted",
    "error",
    "indented",
    "inherit",
    "lam",
    "let",
    "lib_types",
    "lit",
    "lst",
    "mk_enable",
    "mk_option",
    "raw",
    "select",
    "string",
    "types",
    "var",
    "with_",
]
