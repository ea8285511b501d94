"""Composable predicates over option records."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from .config import FilterConfig
from .models import OptionRecord

Predicate = Callable[[OptionRecord], bool]


class OptionFilter:
    """A named predicate that can be combined with ``&``."""

    def __init__(self, predicate: Predicate, description: str = "") -> None:
        self._predicate = predicate
        self.description = description

    def __call__(self, record: OptionRecord) -> bool:
        return self._predicate(record)

    def __and__(self, other: "OptionFilter") -> "OptionFilter":
        return OptionFilter(
            lambda record: self(record) and other(record),
            f"{self.description} and {other.description}",
        )

    def __repr__(self) -> str:
        return f"OptionFilter({self.description!r})"


def prefix(value: str) -> OptionFilter:
    """Keep options whose displayed path starts with ``value``."""
    return OptionFilter(lambda record: record.name.startswith(value), f"prefix {value!r}")


def type_contains(value: str) -> OptionFilter:
    """Keep options whose type text contains ``value`` (case-insensitive)."""
    needle = value.lower()

    def _match(record: OptionRecord) -> bool:
        return record.type is not None and needle in record.type.text.lower()

    return OptionFilter(_match, f"type contains {value!r}")


def search(value: str) -> OptionFilter:
    """Case-insensitive free text search over the path and the description."""
    needle = value.lower()

    def _match(record: OptionRecord) -> bool:
        if needle in record.name.lower():
            return True
        return record.description is not None and needle in record.description.text.lower()

    return OptionFilter(_match, f"search {value!r}")


def has_default() -> OptionFilter:
    return OptionFilter(lambda record: bool(record.default and record.default.strip()), "has default")


def has_description() -> OptionFilter:
    return OptionFilter(
        lambda record: record.description is not None and not record.description.is_empty,
        "has description",
    )


def accept_all() -> OptionFilter:
    return OptionFilter(lambda record: True, "everything")


def all_of(filters: Iterable[OptionFilter]) -> OptionFilter:
    combined: Optional[OptionFilter] = None
    for item in filters:
        combined = item if combined is None else combined & item
    return combined if combined is not None else accept_all()


def build_filter(config: FilterConfig) -> Optional[OptionFilter]:
    """Translate filter settings into one predicate, or ``None`` when no filter is set."""
    filters = []
    if config.prefix:
        filters.append(prefix(config.prefix))
    if config.type:
        filters.append(type_contains(config.type))
    if config.search:
        filters.append(search(config.search))
    if config.has_default:
        filters.append(has_default())
    if config.has_description:
        filters.append(has_description())
    if not filters:
        return None
    return all_of(filters)


__all__ = [
    "OptionFilter",
    "Predicate",
    "accept_all",
    "all_of",
    "build_filter",
    "has_default",
    "has_description",
    "prefix",
    "search",
    "type_contains",
]
