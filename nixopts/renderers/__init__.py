"""Output renderers and plugin discovery."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List

from .base import Renderer
from .html import HtmlRenderer
from .markdown import MarkdownRenderer
from .structured import CsvRenderer, JsonRenderer

_ENTRY_POINT_GROUP = "nixopts.renderers"

_BUILTIN_FACTORIES: Dict[str, Callable[[], Renderer]] = {
    "markdown": MarkdownRenderer,
    "html": HtmlRenderer,
    "json": JsonRenderer,
    "csv": CsvRenderer,
}


def available_renderers() -> List[str]:
    """Names accepted by :func:`get_renderer`, builtins first."""
    names = list(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        if entry.name.lower() not in names:
            names.append(entry.name.lower())
    return names


def get_renderer(name: str) -> Renderer:
    """Instantiate the renderer registered under ``name``."""
    key = name.lower()
    factory = _BUILTIN_FACTORIES.get(key)
    if factory is not None:
        return factory()

    for entry in _iter_entry_points():
        if entry.name.lower() != key:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - third-party plugin
            raise RuntimeError(f"Failed to load renderer entry point '{entry.name}': {exc}") from exc
        return _coerce_renderer(loaded)

    raise ValueError(f"Unknown output format '{name}' (choose from {', '.join(available_renderers())})")


def _coerce_renderer(obj: object) -> Renderer:
    if isinstance(obj, Renderer):
        return obj
    if isinstance(obj, type) and issubclass(obj, Renderer):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Renderer):
            return instance
    raise TypeError("Renderer entry point must be a Renderer subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


__all__ = [
    "CsvRenderer",
    "HtmlRenderer",
    "JsonRenderer",
    "MarkdownRenderer",
    "Renderer",
    "available_renderers",
    "get_renderer",
]
