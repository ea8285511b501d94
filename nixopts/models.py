"""Core data models shared across nixopts components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union

KNOWN_ADMONITION_KINDS = ("note", "warning", "important", "caution", "tip")


@dataclass(frozen=True, order=True)
class OptionPath:
    """Dotted attribute path identifying one option; the merge key."""

    segments: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("Option path must contain at least one segment")
        for segment in self.segments:
            if not isinstance(segment, str) or not segment:
                raise ValueError(f"Invalid option path segment: {segment!r}")

    @classmethod
    def from_string(cls, dotted: str) -> "OptionPath":
        return cls(tuple(dotted.split(".")))

    def __str__(self) -> str:
        return ".".join(self.segments)

    def startswith(self, prefix: "OptionPath") -> bool:
        return self.segments[: len(prefix.segments)] == prefix.segments

    def strip_prefix(self, prefix: "OptionPath") -> "OptionPath":
        """Drop a leading prefix, keeping the path intact when nothing would remain."""
        if not self.startswith(prefix) or len(prefix.segments) >= len(self.segments):
            return self
        return OptionPath(self.segments[len(prefix.segments) :])


@dataclass(frozen=True)
class TypeDescriptor:
    """Canonical rendering of a declared option type."""

    text: str
    raw: str
    recognized: bool = True

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Plain:
    """Ordinary description text."""

    text: str

    @property
    def body(self) -> str:
        return self.text


@dataclass(frozen=True)
class Admonition:
    """Callout block such as a note or a warning."""

    kind: str
    body: str


DescriptionSegment = Union[Plain, Admonition]


@dataclass(frozen=True)
class Description:
    """Ordered plain and callout segments of an option description."""

    segments: Tuple[DescriptionSegment, ...] = ()

    @property
    def text(self) -> str:
        return "".join(segment.body for segment in self.segments)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Location:
    """Source position of a declaration, relative to the scanned root."""

    file: str
    line: int
    column: Optional[int] = None

    def __str__(self) -> str:
        if self.column is None:
            return f"{self.file}:{self.line}"
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class OptionRecord:
    """Everything known about one declared option."""

    path: OptionPath
    location: Location
    type: Optional[TypeDescriptor] = None
    default: Optional[str] = None
    example: Optional[str] = None
    description: Optional[Description] = None
    declarations: Tuple[Location, ...] = ()

    @property
    def name(self) -> str:
        return str(self.path)

    def with_path(self, path: OptionPath) -> "OptionRecord":
        return replace(self, path=path)

    def to_dict(self) -> Dict[str, Any]:
        description: Optional[Dict[str, Any]] = None
        if self.description is not None:
            description = {
                "text": self.description.text,
                "segments": [_segment_to_dict(segment) for segment in self.description.segments],
            }
        return {
            "name": self.name,
            "type": self.type.text if self.type else None,
            "type_raw": self.type.raw if self.type else None,
            "default": self.default,
            "example": self.example,
            "description": description,
            "file_path": self.location.file,
            "line_number": self.location.line,
            "column": self.location.column,
            "declarations": [str(location) for location in self.declarations],
        }


def _segment_to_dict(segment: DescriptionSegment) -> Dict[str, str]:
    if isinstance(segment, Admonition):
        return {"kind": segment.kind, "body": segment.body}
    return {"kind": "plain", "body": segment.text}


DIAGNOSTIC_READ = "read"
DIAGNOSTIC_PARSE = "parse"
DIAGNOSTIC_SYNTAX = "syntax"
DIAGNOSTIC_EXTRACTION = "extraction"


@dataclass(frozen=True)
class Diagnostic:
    """A per-file problem that was recorded instead of aborting the run."""

    file: str
    message: str
    kind: str = DIAGNOSTIC_EXTRACTION
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        position = self.file
        if self.line is not None:
            position = f"{position}:{self.line}"
            if self.column is not None:
                position = f"{position}:{self.column}"
        return f"{position}: {self.kind}: {self.message}"


@dataclass
class SourceFile:
    """A discovered file and its text."""

    path: str
    text: str


@dataclass
class FileResult:
    """Records and diagnostics produced for one discovered file."""

    index: int
    file: str
    records: List[OptionRecord] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    parsed: bool = True


@dataclass
class ExtractionResult:
    """Outcome of one extraction run."""

    options: List[OptionRecord]
    total_options: int
    files_processed: int
    declarations_found: int
    diagnostics: List[Diagnostic] = field(default_factory=list)
    files_failed: int = 0

    @property
    def failed(self) -> bool:
        """True when files were discovered but none of them could be parsed."""
        return self.files_processed > 0 and self.files_failed == self.files_processed

    def summary(self) -> str:
        return (
            f"{self.files_processed} files processed, "
            f"{self.declarations_found} declarations found, "
            f"{len(self.diagnostics)} diagnostics"
        )
