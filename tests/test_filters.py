"""Tests for option record predicates."""

from __future__ import annotations

from nixopts.config import FilterConfig
from nixopts.extraction.admonitions import structure
from nixopts.filters import all_of, build_filter, has_default, has_description, prefix, search, type_contains
from nixopts.models import Location, OptionPath, OptionRecord, TypeDescriptor
from nixopts.registry import finalize


def _record(path: str, **fields) -> OptionRecord:
    return OptionRecord(path=OptionPath.from_string(path), location=Location("m.nix", 1), **fields)


RECORDS = [
    _record(
        "services.nginx.enable",
        type=TypeDescriptor("boolean", "types.bool"),
        default="false",
        description=structure("Whether to enable the Nginx web server."),
    ),
    _record("services.nginx.package", type=TypeDescriptor("package", "types.package")),
    _record(
        "programs.git.extraConfig",
        type=TypeDescriptor("attribute set of string", "types.attrsOf types.str"),
        description=structure("::: {.warning}\nMerged into gitconfig.\n:::"),
    ),
    _record("programs.git.empty", description=structure("")),
]


def _names(records) -> list[str]:
    return [record.name for record in records]


def test_prefix_is_plain_string_match() -> None:
    assert _names(filter(prefix("services.nginx"), RECORDS)) == ["services.nginx.enable", "services.nginx.package"]
    assert _names(filter(prefix("prog"), RECORDS)) == ["programs.git.extraConfig", "programs.git.empty"]


def test_type_match_is_case_insensitive_substring() -> None:
    assert _names(filter(type_contains("STRING"), RECORDS)) == ["programs.git.extraConfig"]


def test_search_covers_path_and_description() -> None:
    assert _names(filter(search("nginx web"), RECORDS)) == ["services.nginx.enable"]
    assert _names(filter(search("GITCONFIG"), RECORDS)) == ["programs.git.extraConfig"]
    assert _names(filter(search("extraconfig"), RECORDS)) == ["programs.git.extraConfig"]


def test_presence_filters() -> None:
    assert _names(filter(has_default(), RECORDS)) == ["services.nginx.enable"]
    assert _names(filter(has_description(), RECORDS)) == ["services.nginx.enable", "programs.git.extraConfig"]


def test_filters_combine_with_and() -> None:
    combined = prefix("services") & has_description()
    assert _names(filter(combined, RECORDS)) == ["services.nginx.enable"]
    assert _names(filter(all_of([]), RECORDS)) == _names(RECORDS)


def test_build_filter_from_config() -> None:
    assert build_filter(FilterConfig()) is None
    predicate = build_filter(FilterConfig(prefix="programs", has_description=True))
    assert predicate is not None
    assert _names(filter(predicate, RECORDS)) == ["programs.git.extraConfig"]


def test_filtering_and_sorting_are_idempotent() -> None:
    predicate = build_filter(FilterConfig(type="string"))
    once = finalize(RECORDS, sort=True, predicate=predicate)
    assert finalize(once, sort=True, predicate=predicate) == once
