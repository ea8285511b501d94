"""Tree-sitter powered Nix parser adapter."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .literals import string_value
from .nodes import (
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

try:  # pragma: no cover - optional dependency
    from tree_sitter_language_pack import get_parser

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    get_parser = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False

_LANGUAGE = "nix"

_LITERAL_KINDS = {
    "integer_expression": "int",
    "float_expression": "float",
    "path_expression": "path",
    "hpath_expression": "path",
    "spath_expression": "path",
    "uri_expression": "uri",
}

# Handlers for these pick their children by field, so a recovery ERROR child
# would otherwise vanish from the converted tree.
_FIELD_PICKED_KINDS = frozenset(
    {
        "binding",
        "inherit",
        "inherit_from",
        "apply_expression",
        "select_expression",
        "with_expression",
        "function_expression",
        "parenthesized_expression",
    }
)


@dataclass(frozen=True)
class ParsedTree:
    """Successfully parsed file; the tree may still contain ``Error`` nodes."""

    root: Expr


@dataclass(frozen=True)
class ParseFailure:
    """The file could not be turned into a syntax tree at all."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None


ParseOutcome = Union[ParsedTree, ParseFailure]


class NixParser:
    """Parses Nix source text into :mod:`nixopts.syntax.nodes` trees.

    Tree-sitter parsers are not thread-safe, so each thread lazily builds its
    own instance.
    """

    def __init__(self) -> None:
        if not TREE_SITTER_AVAILABLE:
            raise RuntimeError(
                "tree-sitter-language-pack is not installed; install it to parse Nix files"
            )
        self._local = threading.local()

    @staticmethod
    def available() -> bool:
        """Return True when a Nix grammar can actually be loaded."""
        if not TREE_SITTER_AVAILABLE:
            return False
        try:
            get_parser(_LANGUAGE)
        except Exception:  # pragma: no cover - depends on installed grammars
            return False
        return True

    def parse(self, text: str) -> ParseOutcome:
        try:
            source = text.encode("utf-8")
        except UnicodeEncodeError as exc:
            return ParseFailure(f"cannot encode source text: {exc}")

        tree = self._parser().parse(source)
        root = tree.root_node
        if root.type == "ERROR":
            row, column = root.start_point
            return ParseFailure("file could not be parsed", row + 1, column + 1)

        children = [child for child in root.named_children if child.type != "comment"]
        if children and all(child.type == "ERROR" for child in children):
            row, column = children[0].start_point
            return ParseFailure("file could not be parsed", row + 1, column + 1)

        return ParsedTree(_Converter(source).expr(root))

    def _parser(self) -> Any:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = get_parser(_LANGUAGE)
            self._local.parser = parser
        return parser


class _Converter:
    """Maps tree-sitter-nix node types onto the closed node set."""

    def __init__(self, source: bytes) -> None:
        self._source = source
        self._handlers: Dict[str, Callable[[Any], Expr]] = {
            "source_code": self._source_code,
            "attrset_expression": self._attrset,
            "rec_attrset_expression": self._attrset,
            "let_attrset_expression": self._attrset,
            "let_expression": self._let,
            "with_expression": self._with,
            "function_expression": self._function,
            "apply_expression": self._apply,
            "select_expression": self._select,
            "variable_expression": self._variable,
            "identifier": self._variable,
            "parenthesized_expression": self._parenthesized,
            "list_expression": self._list,
            "string_expression": self._string,
            "indented_string_expression": self._string,
        }

    def expr(self, node: Any) -> Expr:
        if self._is_broken(node):
            return Error(span=self._span(node), text=self._text(node))
        if node.type in _LITERAL_KINDS:
            return Literal(kind=_LITERAL_KINDS[node.type], span=self._span(node), text=self._text(node))
        handler = self._handlers.get(node.type)
        if handler is None:
            return Other(
                kind=node.type,
                children=tuple(self.expr(child) for child in self._named(node)),
                span=self._span(node),
                text=self._text(node),
            )
        return handler(node)

    # ------------------------------------------------------------------
    # Helpers

    def _text(self, node: Any) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    @staticmethod
    def _span(node: Any) -> Span:
        row, column = node.start_point
        return Span(line=row + 1, column=column + 1)

    @staticmethod
    def _named(node: Any) -> List[Any]:
        return [child for child in node.named_children if child.type != "comment"]

    @staticmethod
    def _is_broken(node: Any) -> bool:
        if node.type == "ERROR" or node.is_missing:
            return True
        if node.type in _FIELD_PICKED_KINDS:
            return any(child.is_missing or child.type == "ERROR" for child in node.children)
        return any(child.is_missing for child in node.children)

    def _field(self, node: Any, name: str, fallback: Optional[int] = None) -> Optional[Any]:
        child = node.child_by_field_name(name)
        if child is not None:
            return child
        if fallback is None:
            return None
        named = self._named(node)
        try:
            return named[fallback]
        except IndexError:
            return None

    def _error(self, node: Any) -> Error:
        return Error(span=self._span(node), text=self._text(node))

    # ------------------------------------------------------------------
    # Node handlers

    def _source_code(self, node: Any) -> Expr:
        children = self._named(node)
        if len(children) == 1:
            return self.expr(children[0])
        return Other(
            kind=node.type,
            children=tuple(self.expr(child) for child in children),
            span=self._span(node),
            text=self._text(node),
        )

    def _attrset(self, node: Any) -> Expr:
        return AttrSet(
            bindings=self._bindings(node),
            recursive=node.type == "rec_attrset_expression",
            span=self._span(node),
            text=self._text(node),
        )

    def _let(self, node: Any) -> Expr:
        body = self._field(node, "body", fallback=-1)
        if body is None or body.type == "binding_set":
            return self._error(node)
        return LetIn(
            bindings=self._bindings(node),
            body=self.expr(body),
            span=self._span(node),
            text=self._text(node),
        )

    def _with(self, node: Any) -> Expr:
        environment = self._field(node, "environment", fallback=0)
        body = self._field(node, "body", fallback=-1)
        if environment is None or body is None:
            return self._error(node)
        return With(
            environment=self.expr(environment),
            body=self.expr(body),
            span=self._span(node),
            text=self._text(node),
        )

    def _function(self, node: Any) -> Expr:
        body = self._field(node, "body", fallback=-1)
        if body is None:
            return self._error(node)
        return Lambda(body=self.expr(body), span=self._span(node), text=self._text(node))

    def _apply(self, node: Any) -> Expr:
        function = self._field(node, "function", fallback=0)
        argument = self._field(node, "argument", fallback=1)
        if function is None or argument is None:
            return self._error(node)
        return Apply(
            function=self.expr(function),
            argument=self.expr(argument),
            span=self._span(node),
            text=self._text(node),
        )

    def _select(self, node: Any) -> Expr:
        target = self._field(node, "expression", fallback=0)
        attrpath = node.child_by_field_name("attrpath")
        if attrpath is None:
            attrpath = next((child for child in self._named(node) if child.type == "attrpath"), None)
        if target is None or attrpath is None:
            return self._error(node)
        default = node.child_by_field_name("default")
        return Select(
            target=self.expr(target),
            attrs=self._attrpath(attrpath),
            default=self.expr(default) if default is not None else None,
            span=self._span(node),
            text=self._text(node),
        )

    def _variable(self, node: Any) -> Expr:
        text = self._text(node)
        return Var(name=text, span=self._span(node), text=text)

    def _parenthesized(self, node: Any) -> Expr:
        inner = self._field(node, "expression", fallback=0)
        if inner is None:
            return self._error(node)
        return self.expr(inner)

    def _list(self, node: Any) -> Expr:
        return ListExpr(
            items=tuple(self.expr(child) for child in self._named(node)),
            span=self._span(node),
            text=self._text(node),
        )

    def _string(self, node: Any) -> Expr:
        return Str(
            indented=node.type == "indented_string_expression",
            span=self._span(node),
            text=self._text(node),
        )

    # ------------------------------------------------------------------
    # Bindings and attribute paths

    def _bindings(self, node: Any) -> Tuple[BindingLike, ...]:
        result: List[BindingLike] = []
        for child in self._named(node):
            if child.type == "binding_set":
                result.extend(self._binding_like(entry) for entry in self._named(child))
            elif child.type == "ERROR":
                result.append(self._error(child))
        return tuple(result)

    def _binding_like(self, node: Any) -> BindingLike:
        if self._is_broken(node):
            return self._error(node)
        if node.type == "binding":
            attrpath = self._field(node, "attrpath", fallback=0)
            value = self._field(node, "expression", fallback=-1)
            if attrpath is None or value is None or value.type == "attrpath":
                return self._error(node)
            return Binding(
                attrs=self._attrpath(attrpath),
                value=self.expr(value),
                span=self._span(node),
                text=self._text(node),
            )
        if node.type in ("inherit", "inherit_from"):
            attrs_node = node.child_by_field_name("attrs")
            if attrs_node is None:
                attrs_node = next(
                    (child for child in self._named(node) if child.type == "inherited_attrs"), None
                )
            source: Optional[Expr] = None
            if node.type == "inherit_from":
                source_node = node.child_by_field_name("expression")
                if source_node is None:
                    source_node = next(
                        (child for child in self._named(node) if child.type != "inherited_attrs"),
                        None,
                    )
                if source_node is not None:
                    source = self.expr(source_node)
            attrs = self._attrpath(attrs_node) if attrs_node is not None else ()
            return Inherit(attrs=attrs, source=source, span=self._span(node), text=self._text(node))
        return self._error(node)

    def _attrpath(self, node: Any) -> Tuple[AttrName, ...]:
        names: List[AttrName] = []
        for child in self._named(node):
            text = self._text(child)
            if child.type == "identifier":
                names.append(AttrName(text))
            elif child.type == "string_expression":
                dynamic = any(part.type == "interpolation" for part in child.named_children)
                names.append(AttrName(string_value(Str(text=text)), dynamic=dynamic))
            else:
                names.append(AttrName(text, dynamic=True))
        return tuple(names)


__all__ = ["NixParser", "ParseFailure", "ParseOutcome", "ParsedTree", "TREE_SITTER_AVAILABLE"]
