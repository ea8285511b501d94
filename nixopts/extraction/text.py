"""Text clean-up helpers for extracted descriptions and values."""

from __future__ import annotations

import re
import textwrap

_ROLE_MARKUP = re.compile(r"\{[a-z]+\}(`[^`]+`)")


def strip_roles(text: str) -> str:
    """Turn ``{option}`foo.bar``` style role markup into plain code spans."""
    return _ROLE_MARKUP.sub(r"\1", text)


def dedent_tail(text: str) -> str:
    """Dedent every line but the first.

    Raw source snippets start right after ``default =`` so only the following
    lines carry the file's indentation.
    """
    first, newline, rest = text.partition("\n")
    if not newline:
        return text
    return f"{first}\n{textwrap.dedent(rest)}"


__all__ = ["dedent_tail", "strip_roles"]
