"""Extraction pipeline: discovery, parsing, per-file location and the merge."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Protocol, Sequence

from .extraction.locator import OptionLocator
from .logging import get_logger, log_diagnostics
from .models import (
    DIAGNOSTIC_EXTRACTION,
    DIAGNOSTIC_PARSE,
    DIAGNOSTIC_READ,
    Diagnostic,
    ExtractionResult,
    FileResult,
    OptionRecord,
    SourceFile,
)
from .registry import OptionRegistry, PathLike, finalize
from .repo_scanner import RepoScanner
from .syntax.tree_sitter import NixParser, ParseFailure, ParseOutcome


class Parser(Protocol):
    def parse(self, text: str) -> ParseOutcome:  # pragma: no cover - protocol
        ...


def default_jobs() -> int:
    return os.cpu_count() or 1


class Orchestrator:
    """Runs the extraction pipeline over a source tree."""

    def __init__(
        self,
        scanner: RepoScanner | None = None,
        parser: Parser | None = None,
    ) -> None:
        self.scanner = scanner or RepoScanner()
        self._parser = parser
        self.logger = get_logger("orchestrator")

    @property
    def parser(self) -> Parser:
        if self._parser is None:
            self._parser = NixParser()
        return self._parser

    def run(
        self,
        path: str | Path,
        *,
        exclude_paths: Sequence[str] = (),
        exclude_dirs: Sequence[str | Path] = (),
        bindings: Optional[Mapping[str, str]] = None,
        strict: bool = False,
        strip_prefix: Optional[PathLike] = None,
        sort: bool = False,
        predicate: Optional[Callable[[OptionRecord], bool]] = None,
        jobs: Optional[int] = None,
    ) -> ExtractionResult:
        """Discover, parse and extract every ``.nix`` file below ``path``."""
        self.logger.info("Scanning %s", path)
        discovery = self.scanner.discover(path, exclude_paths=exclude_paths, exclude_dirs=exclude_dirs)
        return self.collect(
            discovery.files,
            bindings=bindings,
            strict=strict,
            strip_prefix=strip_prefix,
            sort=sort,
            predicate=predicate,
            jobs=jobs,
            diagnostics=discovery.diagnostics,
        )

    def collect(
        self,
        sources: Sequence[SourceFile],
        *,
        bindings: Optional[Mapping[str, str]] = None,
        strict: bool = False,
        strip_prefix: Optional[PathLike] = None,
        sort: bool = False,
        predicate: Optional[Callable[[OptionRecord], bool]] = None,
        jobs: Optional[int] = None,
        diagnostics: Sequence[Diagnostic] = (),
    ) -> ExtractionResult:
        """Extract options from already-read sources and merge them in order."""
        locator = OptionLocator(bindings, strict=strict)
        results = self._process_all(sources, locator, jobs or default_jobs())

        registry = OptionRegistry(strip_prefix=strip_prefix)
        collected: List[Diagnostic] = list(diagnostics)
        declarations = 0
        for result in sorted(results, key=lambda item: item.index):
            registry.extend(result.records)
            declarations += len(result.records)
            collected.extend(result.diagnostics)

        log_diagnostics(self.logger, collected)

        unreadable = sum(1 for diagnostic in diagnostics if diagnostic.kind == DIAGNOSTIC_READ)
        options = finalize(registry.records(), sort=sort, predicate=predicate)
        outcome = ExtractionResult(
            options=options,
            total_options=len(options),
            files_processed=len(sources) + unreadable,
            declarations_found=declarations,
            diagnostics=collected,
            files_failed=unreadable + sum(1 for result in results if not result.parsed),
        )
        self.logger.info("%s", outcome.summary())
        return outcome

    def process_file(
        self,
        index: int,
        source: SourceFile,
        locator: OptionLocator,
        parser: Parser | None = None,
    ) -> FileResult:
        """Parse one file and locate its declarations; failures become diagnostics."""
        self.logger.debug("Processing %s", source.path)
        try:
            outcome = (parser or self.parser).parse(source.text)
        except Exception as exc:  # noqa: BLE001
            self.logger.debug("Parser raised for %s", source.path, exc_info=True)
            return FileResult(
                index=index,
                file=source.path,
                diagnostics=[Diagnostic(file=source.path, message=str(exc), kind=DIAGNOSTIC_PARSE)],
                parsed=False,
            )

        if isinstance(outcome, ParseFailure):
            return FileResult(
                index=index,
                file=source.path,
                diagnostics=[
                    Diagnostic(
                        file=source.path,
                        message=outcome.message,
                        kind=DIAGNOSTIC_PARSE,
                        line=outcome.line,
                        column=outcome.column,
                    )
                ],
                parsed=False,
            )

        try:
            located = locator.locate(outcome.root, source.path)
        except Exception as exc:  # noqa: BLE001
            self.logger.debug("Extraction failed for %s", source.path, exc_info=True)
            return FileResult(
                index=index,
                file=source.path,
                diagnostics=[
                    Diagnostic(file=source.path, message=f"extraction failed: {exc}", kind=DIAGNOSTIC_EXTRACTION)
                ],
            )

        self.logger.debug("%s: %d declarations", source.path, len(located.records))
        return FileResult(
            index=index,
            file=source.path,
            records=located.records,
            diagnostics=located.diagnostics,
        )

    def _process_all(
        self, sources: Sequence[SourceFile], locator: OptionLocator, jobs: int
    ) -> List[FileResult]:
        if not sources:
            return []
        parser = self.parser
        if jobs <= 1 or len(sources) == 1:
            return [self.process_file(index, source, locator, parser) for index, source in enumerate(sources)]

        with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="nixopts-") as executor:
            return list(
                executor.map(
                    lambda item: self.process_file(item[0], item[1], locator, parser),
                    enumerate(sources),
                )
            )


__all__ = ["Orchestrator", "Parser", "default_jobs"]
