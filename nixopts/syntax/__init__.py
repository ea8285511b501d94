"""Nix syntax trees: node variants, literal decoding and the parser adapter."""

from .literals import string_value
from .nodes import Expr, Span
from .tree_sitter import TREE_SITTER_AVAILABLE, NixParser, ParsedTree, ParseFailure, ParseOutcome

__all__ = [
    "Expr",
    "NixParser",
    "ParseFailure",
    "ParseOutcome",
    "ParsedTree",
    "Span",
    "TREE_SITTER_AVAILABLE",
    "string_value",
]
