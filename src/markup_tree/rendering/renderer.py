"""Serialization of node trees back into markup.

The renderer accepts :class:`~markup_tree.tree.nodes.Node` objects, lists of
nodes, or the equivalent wire-format dictionaries (as produced by
``Node.to_dict()`` or loaded from JSON). Malformed parts of a tree render as
empty strings instead of raising, so one bad node does not spoil the output.
"""

import html
from collections import abc
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Iterator, List, Mapping, Tuple, Union

from markup_tree.shared import RenderOptions, get_logger
from markup_tree.tree.nodes import (
    COMMENT_TEXT_PROP,
    COMMENT_TYPE,
    TEMPLATE_TYPE,
    TEXT_CONTENT_PROP,
    TEXT_TYPE,
    Node,
    NodeProp,
)

RenderableTree = Union[None, Node, Mapping[str, Any], List[Any]]

_MISSING = object()


def escape_text(value: Any) -> str:
    """Escape character data: ``&``, ``<`` and ``>``."""
    if value is None:
        return ""
    return html.escape(str(value), quote=False)


def escape_attribute(value: Any) -> str:
    """Escape an attribute value for use inside double quotes."""
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def _field(node: Any, name: str) -> Any:
    if isinstance(node, Node):
        return getattr(node, name)
    if isinstance(node, abc.Mapping):
        return node.get(name)
    return None


def _normalize_props(props: Any) -> List[Tuple[Any, Any]]:
    """Turn props into (name, value) pairs.

    Props may be a sequence of NodeProp objects or ``{name, value}`` mappings,
    or a plain mapping of names to values. A pair whose value is missing gets
    the ``_MISSING`` marker.
    """
    if not props:
        return []
    if isinstance(props, abc.Mapping):
        return list(props.items())
    if isinstance(props, (str, bytes)) or not isinstance(props, abc.Iterable):
        return []

    pairs = []
    for prop in props:
        if isinstance(prop, NodeProp):
            pairs.append((prop.name, prop.value))
        elif isinstance(prop, abc.Mapping):
            pairs.append((prop.get("name"), prop.get("value", _MISSING)))
    return pairs


def _prop_value(node: Any, name: str) -> Any:
    for prop_name, value in _normalize_props(_field(node, "props")):
        if prop_name == name:
            return "" if value is _MISSING else value
    return ""


class MarkupRenderer:
    """Renders node trees with a fixed set of options."""

    COMPONENT = "renderer"

    def __init__(
        self,
        options: Union[None, RenderOptions, Mapping[str, Any]] = None,
        **overrides: Any
    ) -> None:
        """Initialize renderer.

        Args:
            options: RenderOptions, an equivalent mapping, or None for defaults
            **overrides: Individual option fields applied on top of options

        Raises:
            ConfigValidationError: If an option value is invalid
        """
        self.options = RenderOptions.resolve(options, **overrides)
        self.logger = get_logger(__name__, component=self.COMPONENT)
        self._void_tags = self.options.void_tags

    def reconfigure(self, **overrides: Any) -> None:
        """Replace individual option fields."""
        self.options = self.options.override(**overrides)
        self._void_tags = self.options.void_tags

    @property
    def _separator(self) -> str:
        return "\n" if self.options.pretty else ""

    def render(self, tree: RenderableTree) -> str:
        """Render a tree, a list of trees, or wire-format dictionaries.

        Args:
            tree: Root node, list of nodes, or None

        Returns:
            Markup string; empty for None or unrenderable input
        """
        self.logger.debug(
            "Rendering tree",
            extra={
                "pretty": self.options.pretty,
                "xml_mode": self.options.xml_mode,
                "root_type": _field(tree, "type"),
            }
        )
        return self._render_node(tree, 0)

    def _render_attributes(self, node: Any) -> str:
        attributes = []
        for name, value in _normalize_props(_field(node, "props")):
            if not isinstance(name, str) or not name or name == TEXT_CONTENT_PROP:
                continue
            if value is _MISSING:
                value = name
            attributes.append(f'{name}="{escape_attribute(value)}"')
        if not attributes:
            return ""
        return " " + " ".join(attributes)

    def _join_children(self, fragments: List[str]) -> str:
        return self._separator.join(fragment for fragment in fragments if fragment != "")

    def _join_list(self, fragments: List[str]) -> str:
        return self._separator.join(fragments)

    def _wrap_element(self, indent: str, node_type: str, attributes: str, fragments: List[str]) -> str:
        content = self._join_children(fragments)
        if self.options.pretty and content:
            return f"{indent}<{node_type}{attributes}>\n{content}\n{indent}</{node_type}>"
        return f"{indent}<{node_type}{attributes}>{content}</{node_type}>"

    def _render_node(self, root: Any, depth: int) -> str:
        """Render a subtree depth-first with an explicit stack of open frames."""
        output: List[str] = []
        stack: List[_RenderFrame] = []
        self._visit(root, depth, output, stack)
        while stack:
            frame = stack[-1]
            child = next(frame.children, _MISSING)
            if child is _MISSING:
                stack.pop()
                frame.target.append(frame.finish(frame.fragments))
            else:
                self._visit(child, frame.child_depth, frame.fragments, stack)
        return output[0]

    def _visit(self, node: Any, depth: int, target: List[str], stack: List["_RenderFrame"]) -> None:
        """Render a leaf into target, or open a frame for a node with children."""
        if not node:
            target.append("")
            return
        if isinstance(node, list):
            stack.append(_RenderFrame(iter(node), depth, target, self._join_list))
            return
        if not isinstance(node, (Node, abc.Mapping)):
            target.append("")
            return

        indent = self.options.indent * depth if self.options.pretty else ""
        node_type = _field(node, "type")
        children = _field(node, "children")
        if not isinstance(children, list):
            children = []

        if node_type == TEMPLATE_TYPE:
            stack.append(_RenderFrame(iter(children), depth, target, self._join_children))
        elif node_type == TEXT_TYPE:
            target.append(indent + escape_text(_prop_value(node, TEXT_CONTENT_PROP)))
        elif node_type == COMMENT_TYPE:
            target.append(f"{indent}<!--{_prop_value(node, COMMENT_TEXT_PROP)}-->")
        elif not node_type or not isinstance(node_type, str):
            target.append("")
        else:
            attributes = self._render_attributes(node)
            if not children and (self.options.xml_mode or node_type.lower() in self._void_tags):
                target.append(f"{indent}<{node_type}{attributes} />")
            else:
                finish = partial(self._wrap_element, indent, node_type, attributes)
                stack.append(_RenderFrame(iter(children), depth + 1, target, finish))


@dataclass
class _RenderFrame:
    """Node whose children are still being rendered."""

    children: Iterator[Any]
    child_depth: int
    # Fragment list of the parent, receiving this node's output
    target: List[str]
    finish: Callable[[List[str]], str]
    fragments: List[str] = field(default_factory=list)


def render(
    tree: RenderableTree,
    options: Union[None, RenderOptions, Mapping[str, Any]] = None,
    **overrides: Any
) -> str:
    """Render a node tree back into markup.

    Args:
        tree: Node, list of nodes, wire-format dictionary, or None
        options: RenderOptions or an equivalent mapping
        **overrides: Individual option fields, e.g. ``pretty=True``

    Returns:
        Markup string

    Example:
        >>> from markup_tree.tree import element, text_node
        >>> render(element("p", {"class": "x"}, [text_node("a < b")]))
        '<p class="x">a &lt; b</p>'
    """
    return MarkupRenderer(options, **overrides).render(tree)
