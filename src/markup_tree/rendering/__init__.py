"""Serialization of node trees back into HTML or XML markup."""

from .renderer import MarkupRenderer, escape_attribute, escape_text, render

__all__ = [
    "MarkupRenderer",
    "escape_attribute",
    "escape_text",
    "render",
]
