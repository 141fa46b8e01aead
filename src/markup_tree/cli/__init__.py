"""Command-line interface module for markup-tree.

This module provides the ``markup-tree`` tool for parsing markup files into
JSON trees, rendering JSON trees back into markup, and round-trip checks.
"""

from .main import main

__all__ = ["main"]
