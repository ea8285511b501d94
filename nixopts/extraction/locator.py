"""Walks a Nix syntax tree and collects option declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from ..logging import get_logger
from ..models import (
    DIAGNOSTIC_EXTRACTION,
    DIAGNOSTIC_SYNTAX,
    Description,
    Diagnostic,
    Location,
    OptionPath,
    OptionRecord,
    TypeDescriptor,
)
from ..syntax.literals import string_value
from ..syntax.nodes import (
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
    Other,
    Str,
    Var,
    With,
    dotted_name,
    flatten_apply,
    iter_bindings,
)
from .admonitions import structure
from .interpolate import UnboundVariableError, placeholders, substitute
from .text import dedent_tail, strip_roles
from .types import is_type_expression, normalize

OPTION_KEYS = frozenset(
    {
        "type",
        "default",
        "defaultText",
        "example",
        "description",
        "apply",
        "internal",
        "visible",
        "readOnly",
        "relatedPackages",
    }
)

_TEXT_WRAPPERS = frozenset({"literalExpression", "literalExample", "literalMD", "mdDoc"})
_BOOLEAN = TypeDescriptor(text="boolean", raw="types.bool")
_PACKAGE = TypeDescriptor(text="package", raw="types.package")
_MAX_SNIPPET = 40

Scope = Mapping[str, Expr]
Segments = Tuple[str, ...]


@dataclass
class LocateResult:
    """Declarations found in one file, in source order."""

    records: List[OptionRecord] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


class OptionLocator:
    """Finds ``mkOption``-style declarations in parsed Nix files.

    The locator only inspects structure. Let-bound names are followed
    textually (a variable is replaced by the expression it is bound to) but
    nothing is evaluated. The locator holds no per-file state, so one instance
    can serve several worker threads.
    """

    def __init__(
        self,
        bindings: Optional[Mapping[str, str]] = None,
        *,
        strict: bool = False,
        substitute_text: bool = True,
    ) -> None:
        self.bindings: Dict[str, str] = dict(bindings or {})
        self.strict = strict
        self.substitute_text = substitute_text

    def locate(self, tree: Expr, file: str) -> LocateResult:
        result = LocateResult()
        _Walker(self, file, result).expr(tree, (), {})
        return result


def locate(
    tree: Expr,
    file: str,
    bindings: Optional[Mapping[str, str]] = None,
    *,
    strict: bool = False,
) -> LocateResult:
    """Collect the option declarations of one parsed file."""
    return OptionLocator(bindings, strict=strict).locate(tree, file)


class _Walker:
    def __init__(self, locator: OptionLocator, file: str, result: LocateResult) -> None:
        self._locator = locator
        self._file = file
        self._result = result
        self._logger = get_logger("locator")

    # ------------------------------------------------------------------
    # Tree descent

    def expr(self, node: Expr, path: Segments, scope: Scope) -> None:
        if isinstance(node, Error):
            self._syntax_error(node)
        elif isinstance(node, AttrSet):
            if path and _looks_like_declaration(node):
                self._declare_from_metadata(node, node, path, scope)
                return
            if node.recursive:
                scope = {**scope, **dict(iter_bindings(node))}
            self._bindings(node.bindings, path, scope)
        elif isinstance(node, LetIn):
            inner: Dict[str, Expr] = dict(scope)
            for binding in node.bindings:
                if isinstance(binding, Error):
                    self._syntax_error(binding)
                elif isinstance(binding, Binding) and len(binding.attrs) == 1 and not binding.attrs[0].dynamic:
                    inner[binding.attrs[0].name] = binding.value
            self.expr(node.body, path, inner)
        elif isinstance(node, (With, Lambda)):
            self.expr(node.body, path, scope)
        elif isinstance(node, Apply):
            if self._declaration(node, path, scope):
                return
            _, args = flatten_apply(node)
            for arg in args:
                self.expr(arg, path, scope)
        elif isinstance(node, Var):
            bound = scope.get(node.name)
            if bound is not None:
                self.expr(bound, path, _without(scope, node.name))
        elif isinstance(node, ListExpr):
            for item in node.items:
                self.expr(item, path, scope)
        elif isinstance(node, Other):
            for child in node.children:
                self.expr(child, path, scope)

    def _bindings(self, bindings: Tuple[BindingLike, ...], path: Segments, scope: Scope) -> None:
        for binding in bindings:
            if isinstance(binding, Error):
                self._syntax_error(binding)
            elif isinstance(binding, Binding):
                segments = self._segments(binding.attrs, binding.span.line)
                if segments is not None:
                    self.expr(binding.value, path + segments, scope)
            elif isinstance(binding, Inherit):
                self._inherit(binding, path, scope)

    def _inherit(self, node: Inherit, path: Segments, scope: Scope) -> None:
        for attr in node.attrs:
            if attr.dynamic:
                continue
            target = _resolve_inherited(attr.name, node.source, scope)
            if target is None:
                self._logger.debug(
                    "%s:%d: inherited attribute %s has no visible value",
                    self._file,
                    node.span.line,
                    attr.name,
                )
                continue
            segments = self._segments((attr,), node.span.line)
            if segments is not None:
                inner = _without(scope, attr.name) if node.source is None else scope
                self.expr(target, path + segments, inner)

    def _segments(self, attrs: Tuple[AttrName, ...], line: int) -> Optional[Segments]:
        rendered: List[str] = []
        for attr in attrs:
            try:
                segment = substitute(attr.name, self._locator.bindings, strict=self._locator.strict)
            except UnboundVariableError as exc:
                self._diagnostic(str(exc), line=line)
                return None
            if segment != attr.name:
                # A replacement may stand for several segments, e.g. "services.foo".
                rendered.extend(part for part in segment.split(".") if part)
                continue
            if not segment:
                continue
            if attr.dynamic and placeholders(segment):
                self._logger.debug("%s:%d: unresolved attribute name %s", self._file, line, segment)
            rendered.append(segment)
        return tuple(rendered)

    # ------------------------------------------------------------------
    # Declarations

    def _declaration(self, node: Apply, path: Segments, scope: Scope) -> bool:
        head, args = flatten_apply(node)
        name = dotted_name(head)
        if name is None or not args:
            return False
        function = name.rsplit(".", 1)[-1]

        if function == "mkOption":
            metadata = _resolve(args[0], scope)
            if isinstance(metadata, AttrSet):
                self._declare_from_metadata(node, metadata, path, scope)
            else:
                self._diagnostic(
                    "mkOption argument is not an attribute set", line=node.span.line, column=node.span.column
                )
                self._emit(node, path)
            return True

        if function == "mkEnableOption":
            self._emit(
                node,
                path,
                type=_BOOLEAN,
                default="false",
                example="true",
                description=self._description(_resolve(args[0], scope)),
            )
            return True

        if function == "mkPackageOption":
            self._declare_package(node, args, path, scope)
            return True

        return False

    def _declare_from_metadata(self, node: Expr, metadata: AttrSet, path: Segments, scope: Scope) -> None:
        broken = [binding for binding in metadata.bindings if isinstance(binding, Error)]
        if broken:
            for binding in broken:
                self._syntax_error(binding)
            return

        values = dict(iter_bindings(metadata))
        type_ = normalize(_resolve(values["type"], scope)) if "type" in values else None
        default: Optional[str] = None
        if "defaultText" in values:
            default = self._value_text(values["defaultText"])
        elif "default" in values:
            default = self._value_text(values["default"])
        example = self._value_text(values["example"]) if "example" in values else None
        description = (
            self._description(_resolve(values["description"], scope)) if "description" in values else None
        )
        self._emit(node, path, type=type_, default=default, example=example, description=description)

    def _declare_package(self, node: Apply, args: Tuple[Expr, ...], path: Segments, scope: Scope) -> None:
        if len(args) < 2:
            self._diagnostic(
                "mkPackageOption needs a package set and a name", line=node.span.line, column=node.span.column
            )
            self._emit(node, path, type=_PACKAGE)
            return

        package_set = args[0].text or "pkgs"
        package = _package_name(args[1])
        default: Optional[str] = f"{package_set}.{package}"
        example: Optional[str] = None
        extra = _resolve(args[2], scope) if len(args) > 2 else None
        if isinstance(extra, AttrSet):
            values = dict(iter_bindings(extra))
            if "default" in values:
                default = _package_reference(package_set, values["default"])
            if "example" in values:
                example = _package_reference(package_set, values["example"])
        self._emit(
            node,
            path,
            type=_PACKAGE,
            default=default,
            example=example,
            description=structure(f"The {package} package to use."),
        )

    def _emit(
        self,
        node: Expr,
        path: Segments,
        *,
        type: Optional[TypeDescriptor] = None,
        default: Optional[str] = None,
        example: Optional[str] = None,
        description: Optional[Description] = None,
    ) -> None:
        if not path:
            self._diagnostic(
                "option declaration outside of any attribute path", line=node.span.line, column=node.span.column
            )
            return
        location = Location(self._file, node.span.line, node.span.column)
        self._result.records.append(
            OptionRecord(
                path=OptionPath(path),
                location=location,
                type=type,
                default=default,
                example=example,
                description=description,
                declarations=(location,),
            )
        )

    # ------------------------------------------------------------------
    # Values

    def _value_text(self, node: Expr) -> str:
        literal = _unwrap_text(node)
        text = string_value(literal).strip() if literal is not None else node.text
        text = dedent_tail(text)
        if self._locator.substitute_text:
            text = substitute(text, self._locator.bindings)
        return text

    def _description(self, node: Expr) -> Optional[Description]:
        literal = _unwrap_text(node)
        if literal is None and isinstance(node, Str):
            literal = node
        text = string_value(literal) if literal is not None else node.text
        if self._locator.substitute_text:
            text = substitute(text, self._locator.bindings)
        text = strip_roles(dedent_tail(text))
        if not text.strip():
            return None
        return structure(text)

    # ------------------------------------------------------------------
    # Diagnostics

    def _syntax_error(self, node: Error) -> None:
        snippet = node.text.strip().splitlines()[0] if node.text.strip() else ""
        if len(snippet) > _MAX_SNIPPET:
            snippet = snippet[: _MAX_SNIPPET - 3] + "..."
        message = f"could not parse {snippet!r}" if snippet else "could not parse source"
        self._diagnostic(message, kind=DIAGNOSTIC_SYNTAX, line=node.span.line, column=node.span.column)

    def _diagnostic(
        self,
        message: str,
        *,
        kind: str = DIAGNOSTIC_EXTRACTION,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self._result.diagnostics.append(
            Diagnostic(file=self._file, message=message, kind=kind, line=line, column=column)
        )


def _looks_like_declaration(attrset: AttrSet) -> bool:
    keys = []
    for binding in attrset.bindings:
        if not isinstance(binding, Binding) or len(binding.attrs) != 1 or binding.attrs[0].dynamic:
            return False
        keys.append(binding.attrs[0].name)
    if len(keys) < 2 or not set(keys) <= OPTION_KEYS:
        return False
    values = dict(iter_bindings(attrset))
    return "type" in values and is_type_expression(values["type"])


def _resolve(node: Expr, scope: Scope) -> Expr:
    seen = set()
    while isinstance(node, Var) and node.name in scope and node.name not in seen:
        seen.add(node.name)
        node = scope[node.name]
    return node


def _resolve_inherited(name: str, source: Optional[Expr], scope: Scope) -> Optional[Expr]:
    if source is None:
        return scope.get(name)
    container = _resolve(source, scope)
    if isinstance(container, AttrSet):
        return dict(iter_bindings(container)).get(name)
    return None


def _without(scope: Scope, name: str) -> Scope:
    return {key: value for key, value in scope.items() if key != name}


def _unwrap_text(node: Expr) -> Optional[Str]:
    """Return the string argument of ``literalExpression "..."`` style wrappers."""
    head, args = flatten_apply(node)
    name = dotted_name(head)
    if name is None or len(args) != 1 or not isinstance(args[0], Str):
        return None
    if name.rsplit(".", 1)[-1] not in _TEXT_WRAPPERS:
        return None
    return args[0]


def _package_name(node: Expr) -> str:
    if isinstance(node, Str):
        return string_value(node)
    if isinstance(node, ListExpr):
        return ".".join(string_value(item) if isinstance(item, Str) else item.text for item in node.items)
    return node.text


def _package_reference(package_set: str, node: Expr) -> str:
    if isinstance(node, (Str, ListExpr)):
        return f"{package_set}.{_package_name(node)}"
    return dedent_tail(node.text)


__all__ = ["LocateResult", "OPTION_KEYS", "OptionLocator", "locate"]
