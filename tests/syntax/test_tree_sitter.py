"""Tests for the tree-sitter Nix parser adapter."""

from __future__ import annotations

import pytest

from nixopts.extraction import OptionLocator
from nixopts.models import DIAGNOSTIC_SYNTAX, SourceFile
from nixopts.orchestrator import Orchestrator
from nixopts.syntax import NixParser
from nixopts.syntax.nodes import AttrSet, Lambda
from nixopts.syntax.tree_sitter import ParsedTree, ParseFailure

requires_grammar = pytest.mark.skipif(not NixParser.available(), reason="nix grammar not installed")

MODULE = """\
{ lib, pkgs, ... }:
{
  options.services.demo = {
    enable = lib.mkEnableOption "the demo service";
    port = lib.mkOption {
      type = lib.types.port;
      default = 8080;
      description = ''
        Port to listen on.
      '';
    };
  };
}
"""


@requires_grammar
def test_module_is_converted_to_nodes() -> None:
    outcome = NixParser().parse(MODULE)
    assert isinstance(outcome, ParsedTree)
    assert isinstance(outcome.root, Lambda)
    assert isinstance(outcome.root.body, AttrSet)


@requires_grammar
def test_parsed_module_yields_options() -> None:
    outcome = NixParser().parse(MODULE)
    assert isinstance(outcome, ParsedTree)
    result = OptionLocator().locate(outcome.root, "demo.nix")

    assert result.diagnostics == []
    enable, port = result.records
    assert enable.name == "options.services.demo.enable"
    assert enable.type is not None and enable.type.text == "boolean"
    assert enable.location.line == 4
    assert port.name == "options.services.demo.port"
    assert port.type is not None and port.type.text == "16 bit unsigned integer"
    assert port.default == "8080"
    assert port.description is not None
    assert port.description.text.strip() == "Port to listen on."
    assert port.location.line == 5


@requires_grammar
def test_broken_declaration_is_reported() -> None:
    source = "{ options.good = lib.mkOption { type = lib.types.str; }; options.bad = lib.mkOption { type = ;\n}"
    outcome = NixParser().parse(source)
    assert isinstance(outcome, ParsedTree)
    result = OptionLocator().locate(outcome.root, "broken.nix")

    assert [record.name for record in result.records] == ["options.good"]
    [diagnostic] = result.diagnostics
    assert diagnostic.kind == DIAGNOSTIC_SYNTAX
    assert diagnostic.line == 1
    assert diagnostic.file == "broken.nix"


@requires_grammar
def test_broken_declaration_inside_wrapper_yields_no_record() -> None:
    source = (
        "{\n"
        '  options.a = lib.mkEnableOption "a";\n'
        "  options.b = lib.mkIf x (lib.mkOption { type = ; });\n"
        "}\n"
    )
    outcome = NixParser().parse(source)
    assert isinstance(outcome, ParsedTree)
    result = OptionLocator().locate(outcome.root, "wrapped.nix")

    assert [record.name for record in result.records] == ["options.a"]
    assert result.diagnostics
    assert {diagnostic.kind for diagnostic in result.diagnostics} == {DIAGNOSTIC_SYNTAX}


@requires_grammar
def test_pipeline_reports_one_record_and_one_diagnostic() -> None:
    source = SourceFile(
        "f.nix",
        "{ options.good = lib.mkOption { type = lib.types.str; }; options.bad = lib.mkOption { type = ;\n}",
    )
    result = Orchestrator(parser=NixParser()).collect([source], jobs=1)

    assert [record.name for record in result.options] == ["options.good"]
    assert len(result.diagnostics) == 1
    assert not result.failed


@requires_grammar
def test_garbage_is_a_parse_failure() -> None:
    assert isinstance(NixParser().parse(")))((("), ParseFailure)
