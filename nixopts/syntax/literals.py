"""Decoding of Nix string literals from their source text."""

from __future__ import annotations

import re

from .nodes import Str

_DOUBLE_QUOTED_ESCAPE = re.compile(r"\\(.)", re.DOTALL)
_INDENTED_ESCAPE = re.compile(r"''('|\$|\\(.))", re.DOTALL)
_ESCAPED_CHARS = {"n": "\n", "t": "\t", "r": "\r"}


def string_value(node: Str) -> str:
    """Return the literal value of a string node.

    Interpolations are kept verbatim as ``${...}`` so callers can substitute
    them textually.
    """
    raw = node.text
    if node.indented:
        if raw.startswith("''") and raw.endswith("''") and len(raw) >= 4:
            return _indented_value(raw[2:-2])
        return raw
    if raw.startswith('"') and raw.endswith('"') and len(raw) >= 2:
        return _DOUBLE_QUOTED_ESCAPE.sub(_double_quoted_escape, raw[1:-1])
    return raw


def _double_quoted_escape(match: re.Match[str]) -> str:
    char = match.group(1)
    return _ESCAPED_CHARS.get(char, char)


def _indented_value(inner: str) -> str:
    lines = inner.split("\n")
    if len(lines) > 1 and not lines[0].strip(" \t"):
        lines = lines[1:]

    indents = [len(line) - len(line.lstrip(" ")) for line in lines if line.strip(" \t")]
    indent = min(indents) if indents else 0

    stripped = [line[indent:] if line.strip(" \t") else "" for line in lines]
    return _INDENTED_ESCAPE.sub(_indented_escape, "\n".join(stripped))


def _indented_escape(match: re.Match[str]) -> str:
    token = match.group(1)
    if token == "'":
        return "''"
    if token == "$":
        return "$"
    char = match.group(2)
    return _ESCAPED_CHARS.get(char, char)


__all__ = ["string_value"]
