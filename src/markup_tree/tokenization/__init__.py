"""Character-level tokenization of markup.

This package provides the state machine that walks markup one character at a
time and reports text runs, tags, comments and declarations to a sink.
"""

from .tokenizer import (
    COMMENT_CLOSE,
    COMMENT_OPEN,
    MarkupTokenizer,
    ParseContext,
    ParserState,
    TagDraft,
    TokenSink,
    is_name_char,
    is_name_start_char,
    transition,
)

__all__ = [
    "COMMENT_CLOSE",
    "COMMENT_OPEN",
    "MarkupTokenizer",
    "ParseContext",
    "ParserState",
    "TagDraft",
    "TokenSink",
    "is_name_char",
    "is_name_start_char",
    "transition",
]
