"""Markdown output."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..models import OptionRecord
from .base import Renderer
from .templating import create_environment, markdown_description, option_fields


class MarkdownRenderer(Renderer):
    """One heading per option, linking back to the declaring file and line."""

    name = "markdown"
    extension = ".md"
    template_name = "options.md.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        self._env = create_environment(templates_dir)

    def render(self, options: Sequence[OptionRecord]) -> str:
        template = self._env.get_template(self.template_name)
        return template.render(options=[self._view(option) for option in options])

    @staticmethod
    def _view(option: OptionRecord) -> Dict[str, Any]:
        description = ""
        if option.description is not None and not option.description.is_empty:
            description = markdown_description(option.description)
        fields: List[Any] = option_fields(option)
        return {
            "name": option.name,
            "file": option.location.file,
            "line": option.location.line,
            "description": description,
            "fields": fields,
        }


__all__ = ["MarkdownRenderer"]
