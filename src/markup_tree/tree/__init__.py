"""Node tree model and tree building.

This package provides the JSON-shaped node model and the builder that turns
tokenized markup into a tree.
"""

from .builder import ParseResult, TreeBuilder
from .nodes import (
    COMMENT_TEXT_PROP,
    COMMENT_TYPE,
    TEMPLATE_TYPE,
    TEXT_CONTENT_PROP,
    TEXT_TYPE,
    Node,
    NodeProp,
    comment_node,
    element,
    node_count,
    template_node,
    text_node,
)

__all__ = [
    "COMMENT_TEXT_PROP",
    "COMMENT_TYPE",
    "TEMPLATE_TYPE",
    "TEXT_CONTENT_PROP",
    "TEXT_TYPE",
    "Node",
    "NodeProp",
    "ParseResult",
    "TreeBuilder",
    "comment_node",
    "element",
    "node_count",
    "template_node",
    "text_node",
]
