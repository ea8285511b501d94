"""Merges per-file option records into one deduplicated set."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from .logging import get_logger
from .models import Description, OptionPath, OptionRecord

PathLike = Union[OptionPath, str]

_MERGED_FIELDS = ("type", "default", "example", "description")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Description):
        return value.is_empty
    return False


def resolve_field(current: Any, incoming: Any) -> Any:
    """Return the value kept when two declarations of one option disagree.

    The value seen first wins, except that an absent or empty value gives way
    to a non-empty one.
    """
    if _is_empty(current) and not _is_empty(incoming):
        return incoming
    return current


class OptionRegistry:
    """Insertion-ordered mapping of option paths to merged records."""

    def __init__(self, *, strip_prefix: Optional[PathLike] = None) -> None:
        self._records: Dict[OptionPath, OptionRecord] = {}
        self._typed: Dict[OptionPath, bool] = {}
        self._strip = _as_path(strip_prefix)
        self.logger = get_logger("registry")

    def add(self, record: OptionRecord) -> OptionRecord:
        """Fold one record in and return the merged record for its path."""
        if self._strip is not None:
            record = record.with_path(record.path.strip_prefix(self._strip))
        key = record.path
        existing = self._records.get(key)
        if existing is None:
            self._records[key] = record
            self._typed[key] = record.type is not None
            return record

        self.logger.debug("Merging %s from %s into %s", key, record.location, existing.location)
        changes = {name: resolve_field(getattr(existing, name), getattr(record, name)) for name in _MERGED_FIELDS}
        location = existing.location
        if not self._typed[key] and record.type is not None:
            location = record.location
            self._typed[key] = True
        merged = replace(
            existing,
            location=location,
            declarations=existing.declarations + record.declarations,
            **changes,
        )
        self._records[key] = merged
        return merged

    def extend(self, records: Iterable[OptionRecord]) -> None:
        for record in records:
            self.add(record)

    def get(self, path: PathLike) -> Optional[OptionRecord]:
        return self._records.get(_as_path(path))  # type: ignore[arg-type]

    def records(self) -> List[OptionRecord]:
        return list(self._records.values())

    def as_mapping(self) -> Dict[OptionPath, OptionRecord]:
        return dict(self._records)

    def __contains__(self, path: object) -> bool:
        if isinstance(path, (OptionPath, str)):
            return _as_path(path) in self._records
        return False

    def __iter__(self) -> Iterator[OptionRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)


def merge(
    per_file_records: Mapping[str, Sequence[OptionRecord]],
    file_order: Optional[Sequence[str]] = None,
    *,
    strip_prefix: Optional[PathLike] = None,
) -> Dict[OptionPath, OptionRecord]:
    """Fold per-file records in a fixed file order.

    ``file_order`` defaults to the sorted file names, so the outcome never
    depends on the order in which the files finished processing.
    """
    order = list(file_order) if file_order is not None else sorted(per_file_records)
    registry = OptionRegistry(strip_prefix=strip_prefix)
    for file in order:
        registry.extend(per_file_records.get(file, ()))
    return registry.as_mapping()


def finalize(
    merged: Union[Mapping[OptionPath, OptionRecord], Iterable[OptionRecord]],
    *,
    sort: bool = False,
    predicate: Optional[Any] = None,
) -> List[OptionRecord]:
    """Order and filter merged records. Applying it twice changes nothing."""
    records = list(merged.values()) if isinstance(merged, Mapping) else list(merged)
    if sort:
        records.sort(key=lambda record: str(record.path))
    if predicate is not None:
        records = [record for record in records if predicate(record)]
    return records


def _as_path(value: Optional[PathLike]) -> Optional[OptionPath]:
    if isinstance(value, OptionPath):
        return value
    if not value:
        return None
    return OptionPath.from_string(value)


__all__ = ["OptionRegistry", "finalize", "merge", "resolve_field"]
