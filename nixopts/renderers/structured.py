"""Machine readable outputs: JSON and CSV."""

from __future__ import annotations

import csv
import io
import json
from typing import Sequence

from ..models import OptionRecord
from .base import Renderer

CSV_HEADER = ("Option", "Type", "Default", "Example", "Description", "FilePath", "LineNumber")
MISSING = "-"


class JsonRenderer(Renderer):
    name = "json"
    extension = ".json"

    def render(self, options: Sequence[OptionRecord]) -> str:
        return json.dumps([option.to_dict() for option in options], indent=2, ensure_ascii=False) + "\n"


class CsvRenderer(Renderer):
    """One row per option; multi-line descriptions are flattened."""

    name = "csv"
    extension = ".csv"

    def render(self, options: Sequence[OptionRecord]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for option in options:
            description = MISSING
            if option.description is not None and not option.description.is_empty:
                description = option.description.text.replace("\r", "").replace("\n", " ").strip()
            writer.writerow(
                (
                    option.name,
                    option.type.text if option.type is not None else MISSING,
                    option.default if option.default is not None else MISSING,
                    option.example if option.example is not None else MISSING,
                    description,
                    option.location.file,
                    option.location.line,
                )
            )
        return buffer.getvalue()


__all__ = ["CSV_HEADER", "CsvRenderer", "JsonRenderer"]
