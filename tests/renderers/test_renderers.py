"""Tests for the output renderers."""

from __future__ import annotations

import csv
import io
import json
from types import SimpleNamespace

import pytest

import nixopts.renderers as renderers
from nixopts.extraction.admonitions import structure
from nixopts.models import Location, OptionPath, OptionRecord, TypeDescriptor
from nixopts.renderers import CsvRenderer, HtmlRenderer, JsonRenderer, MarkdownRenderer, Renderer, get_renderer
from nixopts.renderers.structured import CSV_HEADER
from nixopts.renderers.templating import create_environment

ENABLE = OptionRecord(
    path=OptionPath.from_string("services.nginx.enable"),
    location=Location("modules/nginx.nix", 4, 5),
    type=TypeDescriptor("boolean", "types.bool"),
    default="false",
    example="true",
    description=structure("Main text.\n::: {.warning}\nBe careful <now>.\n:::\nMore."),
    declarations=(Location("modules/nginx.nix", 4, 5), Location("modules/extra.nix", 2)),
)
SETTINGS = OptionRecord(
    path=OptionPath.from_string("services.nginx.settings"),
    location=Location("modules/nginx.nix", 12),
    type=TypeDescriptor("attribute set of string", "types.attrsOf types.str"),
    default="{\n  worker_processes = \"auto\";\n}",
)


def test_markdown_layout() -> None:
    output = MarkdownRenderer().render([ENABLE, SETTINGS])

    assert output.startswith("# NixOS Module Options\n")
    assert "## [`services.nginx.enable`](modules/nginx.nix#L4)" in output
    assert "Main text.\n\n> [!WARNING]\n> Be careful <now>.\n\nMore." in output
    assert "**Type:** `boolean`" in output
    assert "**Default:** `false`" in output
    assert "**Example:** `true`" in output
    assert '**Default:**\n\n```nix\n{\n  worker_processes = "auto";\n}\n```' in output
    assert output.rstrip().endswith("*Generated with nixopts*")


def test_markdown_long_values_use_fenced_blocks() -> None:
    long_type = TypeDescriptor("x" * 80, "raw")
    record = OptionRecord(path=OptionPath(("a",)), location=Location("a.nix", 1), type=long_type)
    output = MarkdownRenderer().render([record])
    assert f"**Type:**\n\n```nix\n{'x' * 80}\n```" in output


def test_markdown_escapes_backticks_inline() -> None:
    record = OptionRecord(path=OptionPath(("a",)), location=Location("a.nix", 1), default="`cmd`")
    assert "**Default:** `\\`cmd\\``" in MarkdownRenderer().render([record])


def test_markdown_unknown_callout_kind_renders_as_note() -> None:
    record = OptionRecord(
        path=OptionPath(("a",)),
        location=Location("a.nix", 1),
        description=structure("::: {.custom-kind}\nHeads up.\n:::\n"),
    )
    output = MarkdownRenderer().render([record])
    assert "> [!NOTE]\n> Heads up." in output
    assert "CUSTOM-KIND" not in output


def test_template_filters_are_registered() -> None:
    env = create_environment()
    template = env.from_string("{{ record | option_fields | length }}|{{ record.description | markdown_description }}")
    assert template.render(record=ENABLE).startswith("3|Main text.")


def test_html_escapes_and_marks_alerts() -> None:
    output = HtmlRenderer().render([ENABLE])
    assert "<title>NixOS Module Options</title>" in output
    assert 'href="modules/nginx.nix#L4"' in output
    assert 'class="markdown-alert markdown-alert-warning"' in output
    assert "Be careful &lt;now&gt;." in output
    assert "<code>boolean</code>" in output


def test_json_output() -> None:
    data = json.loads(JsonRenderer().render([ENABLE]))
    [entry] = data
    assert entry["name"] == "services.nginx.enable"
    assert entry["type"] == "boolean"
    assert entry["file_path"] == "modules/nginx.nix"
    assert entry["line_number"] == 4
    assert entry["declarations"] == ["modules/nginx.nix:4:5", "modules/extra.nix:2"]
    assert [segment["kind"] for segment in entry["description"]["segments"]] == ["plain", "warning", "plain"]


def test_csv_output() -> None:
    bare = OptionRecord(path=OptionPath(("bare",)), location=Location("b.nix", 7))
    rows = list(csv.reader(io.StringIO(CsvRenderer().render([ENABLE, bare]))))
    assert tuple(rows[0]) == CSV_HEADER
    assert rows[1][0] == "services.nginx.enable"
    assert rows[1][4] == "Main text. Be careful <now>. More."
    assert rows[1][5:] == ["modules/nginx.nix", "4"]
    assert rows[2] == ["bare", "-", "-", "-", "-", "b.nix", "7"]


def test_builtin_lookup_and_unknown_format() -> None:
    assert isinstance(get_renderer("Markdown"), MarkdownRenderer)
    assert isinstance(get_renderer("csv"), CsvRenderer)
    with pytest.raises(ValueError):
        get_renderer("docx")


def test_entry_point_renderers(monkeypatch: pytest.MonkeyPatch) -> None:
    class PlainRenderer(Renderer):
        name = "plain"
        extension = ".txt"

        def render(self, options):
            return "\n".join(option.name for option in options)

    entry = SimpleNamespace(name="plain", load=lambda: PlainRenderer)
    monkeypatch.setattr(renderers, "_iter_entry_points", lambda: [entry])

    assert "plain" in renderers.available_renderers()
    renderer = get_renderer("plain")
    assert renderer.render([ENABLE]) == "services.nginx.enable"
