"""Jinja environment shared by the template based renderers."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from ..models import KNOWN_ADMONITION_KINDS, Admonition, Description, OptionRecord

MAX_INLINE_LENGTH = 72
TEMPLATES_DIR = Path(__file__).with_name("templates")


def is_block(value: Optional[str]) -> bool:
    """Values spanning lines or longer than a heading line go in a fenced block."""
    return value is not None and ("\n" in value or len(value) > MAX_INLINE_LENGTH)


def inline_code(value: str) -> str:
    return value.replace("`", "\\`")


def alert_kind(kind: str) -> str:
    """GitHub alert name for a callout kind; unknown kinds show as notes."""
    lowered = kind.lower()
    return (lowered if lowered in KNOWN_ADMONITION_KINDS else "note").upper()


def markdown_description(description: Description) -> str:
    """Plain text as is, callouts as GitHub alert quotes."""
    parts = []
    for segment in description.segments:
        if isinstance(segment, Admonition):
            lines = segment.body.rstrip("\n").splitlines()
            quoted = "\n".join(f"> {line}".rstrip() for line in lines)
            parts.append(f"> [!{alert_kind(segment.kind)}]\n{quoted}\n")
        else:
            parts.append(segment.text)
    return "\n\n".join(part.strip("\n") for part in parts if part.strip())


def option_fields(record: OptionRecord) -> List[Tuple[str, str]]:
    """Labelled type, default and example values present on ``record``."""
    fields = []
    if record.type is not None:
        fields.append(("Type", record.type.text))
    if record.default is not None:
        fields.append(("Default", record.default.rstrip("\n")))
    if record.example is not None:
        fields.append(("Example", record.example.rstrip("\n")))
    return fields


def create_environment(templates_dir: Path | None = None, *, autoescape: bool = False) -> Environment:
    directories = [str(templates_dir)] if templates_dir else []
    directories.append(str(TEMPLATES_DIR))
    env = Environment(
        loader=FileSystemLoader(directories),
        autoescape=autoescape,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.tests["block"] = is_block
    env.filters["inline_code"] = inline_code
    env.filters["markdown_description"] = markdown_description
    env.filters["option_fields"] = option_fields
    return env


__all__ = [
    "MAX_INLINE_LENGTH",
    "alert_kind",
    "create_environment",
    "inline_code",
    "is_block",
    "markdown_description",
    "option_fields",
]
