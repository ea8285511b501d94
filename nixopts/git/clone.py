"""Shallow clones of remote repositories."""

from __future__ import annotations

import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from ..logging import get_logger

Runner = Callable[..., str]


class AcquisitionError(RuntimeError):
    """Raised when a source tree cannot be fetched."""


class RepositoryFetcher:
    """Resolves a local path or clones a git URL into a temporary directory."""

    def __init__(self, runner: Runner | None = None) -> None:
        self._runner = runner or self._default_runner
        self.logger = get_logger("git")

    def prepare(
        self,
        path: str,
        *,
        branch: Optional[str] = None,
        depth: int = 1,
    ) -> Tuple[Path, Optional[tempfile.TemporaryDirectory]]:
        """Return the directory to scan and the temporary directory to clean up, if any."""
        local = Path(path).expanduser()
        if local.exists():
            self.logger.debug("Using local path %s", local)
            return local, None

        if depth < 1:
            raise AcquisitionError(f"Clone depth must be at least 1, got {depth}")

        workspace = tempfile.TemporaryDirectory(prefix="nixopts-")
        target = Path(workspace.name) / "checkout"
        args: List[str] = ["git", "clone", "--depth", str(depth)]
        if branch:
            args.extend(["--branch", branch])
        args.extend([path, str(target)])

        self.logger.info("Cloning %s", path)
        try:
            self._run(args, cwd=Path(workspace.name))
        except (OSError, subprocess.CalledProcessError) as exc:
            workspace.cleanup()
            raise AcquisitionError(f"Failed to clone repository {path}: {_describe(exc)}") from exc
        return target, workspace

    def _run(self, args: Iterable[str], *, cwd: Path) -> str:
        return self._runner(args, cwd=cwd)

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


def prepare_path(
    path: str,
    branch: Optional[str] = None,
    depth: int = 1,
    *,
    runner: Runner | None = None,
) -> Tuple[Path, Optional[tempfile.TemporaryDirectory]]:
    return RepositoryFetcher(runner).prepare(path, branch=branch, depth=depth)


def _describe(exc: Exception) -> str:
    if isinstance(exc, subprocess.CalledProcessError) and exc.stderr:
        return str(exc.stderr).strip()
    return str(exc)


__all__ = ["AcquisitionError", "RepositoryFetcher", "Runner", "prepare_path"]
