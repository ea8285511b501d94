"""Standalone HTML page output."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..models import Admonition, OptionRecord
from .base import Renderer
from .templating import create_environment, option_fields


class HtmlRenderer(Renderer):
    name = "html"
    extension = ".html"
    template_name = "options.html.j2"

    def __init__(self, templates_dir: Path | None = None, *, title: str = "NixOS Module Options") -> None:
        self._env = create_environment(templates_dir, autoescape=True)
        self.title = title

    def render(self, options: Sequence[OptionRecord]) -> str:
        template = self._env.get_template(self.template_name)
        return template.render(title=self.title, options=[self._view(option) for option in options])

    @staticmethod
    def _view(option: OptionRecord) -> Dict[str, Any]:
        segments: List[Dict[str, str]] = []
        if option.description is not None:
            for segment in option.description.segments:
                if isinstance(segment, Admonition):
                    segments.append({"kind": segment.kind.lower(), "body": segment.body.strip("\n")})
                elif segment.text.strip():
                    segments.append({"kind": "plain", "body": segment.text.strip("\n")})
        return {
            "name": option.name,
            "file": option.location.file,
            "line": option.location.line,
            "segments": segments,
            "fields": option_fields(option),
        }


__all__ = ["HtmlRenderer"]
