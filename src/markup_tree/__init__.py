"""markup-tree.

Parse HTML or XML markup into a JSON-shaped node tree and render such a tree
back into markup. Parsing never fails on malformed input: the best-effort
tree is returned and structural problems are reported as warnings.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), render()
- Level 2: Reusable parser and renderer - MarkupParser, MarkupRenderer
"""

__version__ = "0.1.0"
__author__ = "markup-tree contributors"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Reusable parser and renderer
from .api import MarkupParser, parse, parse_with_diagnostics
from .rendering import MarkupRenderer, render

# Configuration classes for advanced usage
from .shared.config import ParserOptions, RenderOptions
from .shared.errors import InvalidInputError, MarkupTreeError

# Core result objects for all API levels
from .tree import Node, NodeProp, ParseResult

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "parse",
    "parse_with_diagnostics",
    "render",

    # Level 2: Reusable parser and renderer
    "MarkupParser",
    "MarkupRenderer",

    # Result objects and data structures
    "Node",
    "NodeProp",
    "ParseResult",

    # Configuration and errors
    "ParserOptions",
    "RenderOptions",
    "InvalidInputError",
    "MarkupTreeError",
]
