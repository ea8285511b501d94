"""Discovery of ``.nix`` files below a source root."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from .config import CONFIG_FILENAME, ConfigError, load_config
from .logging import get_logger
from .models import DIAGNOSTIC_READ, Diagnostic, SourceFile

NIX_SUFFIX = ".nix"

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".direnv",
    "node_modules",
    "__pycache__",
    "result",
}


@dataclass
class IgnoreRule:
    """One ignore pattern from .gitignore or .nixopts.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return fnmatchcase(rel_path, f"{self.pattern}/*")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


@dataclass
class Discovery:
    """Files found under a root, ordered by relative path."""

    root: Path
    files: List[SourceFile] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _parse_config_excludes(path: Path) -> List[IgnoreRule]:
    try:
        config = load_config(path)
    except ConfigError:
        return []
    return [rule for rule in map(_build_ignore_rule, config.exclude_paths) if rule is not None]


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


class RepoScanner:
    """Walks a source tree and reads every ``.nix`` file in it."""

    def __init__(self) -> None:
        self.logger = get_logger("scanner")

    def discover(
        self,
        root: str | Path,
        exclude_paths: Sequence[str] = (),
        exclude_dirs: Sequence[str | Path] = (),
    ) -> Discovery:
        """Return the readable ``.nix`` files below ``root`` sorted by relative path.

        ``exclude_paths`` are gitignore-style patterns, ``exclude_dirs`` are
        directories given either absolute or relative to ``root``.
        """
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Source path not found: {root}")

        discovery = Discovery(root=root_path)
        if root_path.is_file():
            self._read(root_path, root_path.name, discovery)
            return discovery
        if not root_path.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {root}")

        rules = _parse_gitignore(root_path / ".gitignore")
        rules.extend(_parse_config_excludes(root_path / CONFIG_FILENAME))
        rules.extend(rule for rule in map(_build_ignore_rule, exclude_paths) if rule is not None)
        skipped = {self._absolute(root_path, directory) for directory in exclude_dirs}

        candidates = sorted(self._iter_files(root_path, rules, skipped), key=lambda item: item[0])
        for rel_path, path in candidates:
            self._read(path, rel_path, discovery)

        self.logger.debug("Discovered %d nix files under %s", len(discovery.files), root_path)
        return discovery

    @staticmethod
    def _absolute(root: Path, directory: str | Path) -> Path:
        candidate = Path(directory).expanduser()
        if not candidate.is_absolute():
            candidate = root / candidate
        return candidate.resolve()

    def _iter_files(
        self, root: Path, rules: Sequence[IgnoreRule], skipped: set
    ) -> Iterator[Tuple[str, Path]]:
        visited = set()
        for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
            current_dir = Path(dirpath)
            real = current_dir.resolve()
            if real in visited:
                # Symlink loop.
                dirnames[:] = []
                continue
            visited.add(real)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept = []
            for name in dirnames:
                if name in _EXCLUDED_DIRS or name.startswith("."):
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rules):
                    continue
                if (current_dir / name).resolve() in skipped:
                    self.logger.debug("Skipping excluded directory %s", rel_path)
                    continue
                kept.append(name)
            dirnames[:] = kept

            for filename in filenames:
                if not filename.endswith(NIX_SUFFIX) or filename.startswith("."):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules):
                    continue
                yield rel_path, current_dir / filename

    def _read(self, path: Path, rel_path: str, discovery: Discovery) -> None:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Could not read %s: %s", rel_path, exc)
            discovery.diagnostics.append(
                Diagnostic(file=rel_path, message=f"could not read file: {exc}", kind=DIAGNOSTIC_READ)
            )
            return
        discovery.files.append(SourceFile(path=rel_path, text=text))


__all__ = ["Discovery", "IgnoreRule", "NIX_SUFFIX", "RepoScanner"]
