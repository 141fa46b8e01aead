"""Shared utilities for markup-tree.

This package provides the configuration objects, diagnostic types, error types
and logging helpers used by both the parser and the renderer.
"""

from .config import (
    DEFAULT_SELF_CLOSING_TAGS,
    ConfigError,
    ConfigValidationError,
    ParserOptions,
    RenderOptions,
)
from .errors import (
    InvalidInputError,
    MarkupTreeError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "DEFAULT_SELF_CLOSING_TAGS",
    "ConfigError",
    "ConfigValidationError",
    "CorrelationLogger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "InvalidInputError",
    "MarkupTreeError",
    "ParserOptions",
    "PerformanceMetrics",
    "RenderOptions",
    "get_logger",
]
