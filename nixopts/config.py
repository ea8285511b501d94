"""Configuration loading for nixopts (.nixopts.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import OptionPath

CONFIG_FILENAME = ".nixopts.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class FilterConfig:
    """Record filters applied after the merge."""

    prefix: Optional[str] = None
    type: Optional[str] = None
    search: Optional[str] = None
    has_default: bool = False
    has_description: bool = False


@dataclass
class OutputConfig:
    """Where and how the option list is written."""

    format: str = "markdown"
    path: Optional[str] = None


@dataclass
class NixoptsConfig:
    """Settings defined in .nixopts.yml."""

    root: Path
    replace: Dict[str, str] = field(default_factory=dict)
    exclude_paths: List[str] = field(default_factory=list)
    strip_prefix: Optional[str] = None
    sort: bool = False
    strict: bool = False
    jobs: Optional[int] = None
    output: OutputConfig = field(default_factory=OutputConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)


def load_config(config_path: Path) -> NixoptsConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return NixoptsConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    replace_data = data.get("replace")
    if replace_data is not None and not isinstance(replace_data, dict):
        raise ConfigError("'replace' must be a mapping of names to values")
    replace = {str(key): str(value) for key, value in (replace_data or {}).items()}

    jobs = _as_int(data.get("jobs"))
    if jobs is not None and jobs < 1:
        raise ConfigError("'jobs' must be a positive integer")

    output_data = _as_dict(data.get("output"))
    output = OutputConfig()
    if output_data:
        output.format = _as_str(output_data.get("format")) or output.format
        output.path = _as_str(output_data.get("path"))

    strip_prefix = _as_str(data.get("strip_prefix"))
    if strip_prefix:
        try:
            OptionPath.from_string(strip_prefix)
        except ValueError as exc:
            raise ConfigError(f"'strip_prefix' is not a valid option path: {exc}") from exc

    filter_data = _as_dict(data.get("filters"))
    filters = FilterConfig()
    if filter_data:
        filters = FilterConfig(
            prefix=_as_str(filter_data.get("prefix")),
            type=_as_str(filter_data.get("type")),
            search=_as_str(filter_data.get("search")),
            has_default=_as_bool(filter_data.get("has_default")) or False,
            has_description=_as_bool(filter_data.get("has_description")) or False,
        )

    return NixoptsConfig(
        root=root,
        replace=replace,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        strip_prefix=strip_prefix,
        sort=_as_bool(data.get("sort")) or False,
        strict=_as_bool(data.get("strict")) or False,
        jobs=jobs,
        output=output,
        filters=filters,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "FilterConfig", "NixoptsConfig", "OutputConfig", "load_config"]
