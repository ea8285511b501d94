"""``${name}`` placeholder substitution for option paths and text."""

from __future__ import annotations

import re
from typing import List, Mapping

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


class UnboundVariableError(KeyError):
    """Raised in strict mode when a placeholder has no binding."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"no replacement given for ${{{self.name}}}"


def substitute(text: str, bindings: Mapping[str, str], *, strict: bool = False) -> str:
    """Replace bound ``${name}`` placeholders.

    Unbound placeholders are left untouched unless ``strict`` is set, in which
    case the first one raises :class:`UnboundVariableError`.
    """
    if not bindings and not strict:
        return text

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in bindings:
            return bindings[name]
        if strict:
            raise UnboundVariableError(name)
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, text)


def placeholders(text: str) -> List[str]:
    """Return placeholder names in order of appearance."""
    return _PLACEHOLDER.findall(text)


__all__ = ["UnboundVariableError", "placeholders", "substitute"]
