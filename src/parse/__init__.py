"""Parsing utilities for formatcheck."""

from parse.ast_imports import extract_import_bindings
from parse.format_spec import (
    ConversionCategory,
    ConversionSpecifier,
    FormatSpecError,
    parse_format_string,
)
from parse.treesitter_calls import CallRecord, extract_calls_treesitter
from parse.treesitter_declarations import (
    DeclarationSite,
    extract_declarations,
    parse_source,
)

__all__ = [
    "CallRecord",
    "ConversionCategory",
    "ConversionSpecifier",
    "DeclarationSite",
    "FormatSpecError",
    "extract_calls_treesitter",
    "extract_declarations",
    "extract_import_bindings",
    "parse_format_string",
    "parse_source",
]
