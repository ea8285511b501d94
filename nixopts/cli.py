"""Command line entrypoint for nixopts."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Sequence

from . import __version__
from .config import ConfigError, FilterConfig, NixoptsConfig, load_config
from .filters import build_filter
from .git import AcquisitionError, prepare_path
from .logging import configure_logging, get_logger
from .models import OptionPath
from .orchestrator import Orchestrator
from .renderers import available_renderers, get_renderer

STDOUT = "stdout"
DEFAULT_OUTPUT_STEM = "nix-options"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nixopts",
        description="Extract NixOS module option documentation from a tree of .nix files.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Local directory, single .nix file or git URL (defaults to the current directory).",
    )
    parser.add_argument("-p", "--path", dest="path_option", default=None, help="Same as the positional path.")
    parser.add_argument(
        "-o",
        "--out",
        default=None,
        help=f"Output file, or '{STDOUT}' (defaults to {DEFAULT_OUTPUT_STEM}.<format>).",
    )
    parser.add_argument(
        "-f",
        "--format",
        default=None,
        help=f"Output format: {', '.join(available_renderers())} (default: markdown).",
    )
    parser.add_argument("-s", "--sort", action="store_true", default=None, help="Sort options by name.")
    parser.add_argument("-b", "--branch", default=None, help="Branch to check out when cloning.")
    parser.add_argument("-d", "--depth", type=int, default=1, help="Clone depth for remote repositories.")
    parser.add_argument("--prefix", default=None, help="Only keep options whose name starts with this.")
    parser.add_argument(
        "--replace",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Substitute ${KEY} with VALUE in option names and text. Repeatable.",
    )
    parser.add_argument("--search", default=None, help="Case-insensitive search over names and descriptions.")
    parser.add_argument("--type-filter", default=None, help="Only keep options whose type contains this.")
    parser.add_argument("--has-default", action="store_true", default=None, help="Only options with a default.")
    parser.add_argument(
        "--has-description", action="store_true", default=None, help="Only options with a description."
    )
    parser.add_argument(
        "-e",
        "--exclude-dir",
        action="append",
        default=[],
        help="Directory to skip; repeatable or comma separated.",
    )
    parser.add_argument("--strip-prefix", default=None, help="Drop this leading path (e.g. 'options').")
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Report option names with unbound ${...} placeholders instead of keeping them.",
    )
    parser.add_argument("-j", "--jobs", type=int, default=None, help="Worker threads (default: CPU count).")
    parser.add_argument("--config", default=None, help="Path to a .nixopts.yml file.")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Enable debug logging.")
    parser.add_argument("-q", "--quiet", action="store_true", default=False, help="Only show warnings and errors.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    return parser


def parse_replacements(pairs: Sequence[str]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` pairs; raises ``ValueError`` on malformed input."""
    replacements: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid replacement '{pair}': expected KEY=VALUE")
        replacements[key.strip()] = value
    return replacements


def split_exclusions(values: Sequence[str]) -> List[str]:
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def _load_settings(parser: argparse.ArgumentParser, args: argparse.Namespace, source: str) -> NixoptsConfig:
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            parser.exit(1, f"Config file not found: {config_path}\n")
    else:
        local = Path(source).expanduser()
        config_path = local if local.is_dir() else Path.cwd()
    try:
        return load_config(config_path)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for nixopts."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)
    logger = get_logger("cli")

    source = args.path or args.path_option or "."
    config = _load_settings(parser, args, source)

    try:
        replacements = {**config.replace, **parse_replacements(args.replace)}
    except ValueError as exc:
        parser.error(str(exc))
    if args.jobs is not None and args.jobs < 1:
        parser.error("--jobs must be a positive integer")

    strip_prefix = args.strip_prefix if args.strip_prefix is not None else config.strip_prefix
    if strip_prefix:
        try:
            OptionPath.from_string(strip_prefix)
        except ValueError as exc:
            parser.exit(1, f"Invalid --strip-prefix '{strip_prefix}': {exc}\n")

    output_format = args.format or config.output.format
    try:
        renderer = get_renderer(output_format)
    except (ValueError, TypeError, RuntimeError) as exc:
        parser.exit(1, f"{exc}\n")

    filters = FilterConfig(
        prefix=args.prefix if args.prefix is not None else config.filters.prefix,
        type=args.type_filter if args.type_filter is not None else config.filters.type,
        search=args.search if args.search is not None else config.filters.search,
        has_default=bool(args.has_default or config.filters.has_default),
        has_description=bool(args.has_description or config.filters.has_description),
    )

    try:
        root, workspace = prepare_path(source, branch=args.branch, depth=args.depth)
    except AcquisitionError as exc:
        parser.exit(1, f"{exc}\n")

    try:
        result = Orchestrator().run(
            root,
            exclude_paths=config.exclude_paths,
            exclude_dirs=split_exclusions(args.exclude_dir),
            bindings=replacements,
            strict=bool(args.strict or config.strict),
            strip_prefix=strip_prefix,
            sort=bool(args.sort or config.sort),
            predicate=build_filter(filters),
            jobs=args.jobs or config.jobs,
        )
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except RuntimeError as exc:
        parser.exit(1, f"nixopts failed: {exc}\nRun with --verbose for more details.\n")
    finally:
        if workspace is not None:
            workspace.cleanup()

    if result.failed:
        parser.exit(1, f"No file could be parsed ({result.files_failed} of {result.files_processed} failed).\n")
    if not result.options:
        logger.warning("No options found")

    document = renderer.render(result.options)
    out = args.out or config.output.path or f"{DEFAULT_OUTPUT_STEM}{renderer.extension}"
    if out == STDOUT:
        sys.stdout.write(document)
        print(result.summary(), file=sys.stderr)
        return

    out_path = Path(out)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(document, encoding="utf-8")
    except OSError as exc:
        parser.exit(1, f"Could not write {out_path}: {exc}\n")
    print(f"{result.total_options} options written to {out_path} ({result.summary()})")


if __name__ == "__main__":  # pragma: no cover
    main()
