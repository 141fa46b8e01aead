"""Public parsing API: module-level functions and the reusable parser class."""

from .parser import MarkupParser, parse, parse_with_diagnostics

__all__ = [
    "MarkupParser",
    "parse",
    "parse_with_diagnostics",
]
