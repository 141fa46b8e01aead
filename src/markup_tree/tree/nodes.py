"""Node data model shared by the parser and the renderer.

A tree is made of plain records with three fields: ``type``, ``props`` and
``children``. The node kind is encoded in ``type``:

* ``"#text"``: a text run, with a single ``textContent`` prop
* ``"#comments"``: a comment, with a single ``text`` prop
* ``"template"``: a synthetic wrapper around several top-level nodes
* anything else: an element, ``type`` being its tag name

``props`` is an ordered list of name/value pairs rather than a mapping, so
attribute order and duplicate attributes survive a round trip. Nodes carry no
parent reference, which keeps trees acyclic and directly serializable to the
JSON wire format ``{"type": ..., "props": [...], "children": [...]}``.
"""

import json
from collections import abc
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

TEXT_TYPE = "#text"
COMMENT_TYPE = "#comments"
TEMPLATE_TYPE = "template"

TEXT_CONTENT_PROP = "textContent"
COMMENT_TEXT_PROP = "text"

_SPECIAL_TYPES = frozenset({TEXT_TYPE, COMMENT_TYPE, TEMPLATE_TYPE})


@dataclass
class NodeProp:
    """A single name/value pair: an attribute, or the content of a text node."""

    name: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass
class Node:
    """A node of the markup tree.

    Nodes are built incrementally by the parser and treated as read-only once
    attached to their parent. ``children`` stays ``None`` until the first
    child is appended, so leaf elements serialize without a children key.
    """

    type: str
    props: Optional[List[NodeProp]] = None
    children: Optional[List["Node"]] = None

    def __post_init__(self) -> None:
        """Validate node structure."""
        if not isinstance(self.type, str):
            raise TypeError("Node type must be a string")
        if self.props is not None and not isinstance(self.props, list):
            raise TypeError("Node props must be a list of NodeProp")
        if self.children is not None and not isinstance(self.children, list):
            raise TypeError("Node children must be a list of Node")

    @property
    def is_text(self) -> bool:
        return self.type == TEXT_TYPE

    @property
    def is_comment(self) -> bool:
        return self.type == COMMENT_TYPE

    @property
    def is_template(self) -> bool:
        return self.type == TEMPLATE_TYPE

    @property
    def is_element(self) -> bool:
        return self.type not in _SPECIAL_TYPES

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def text_content(self) -> Optional[str]:
        """Raw content of a text or comment node; None for other kinds."""
        if self.is_text:
            return self.get_prop(TEXT_CONTENT_PROP)
        if self.is_comment:
            return self.get_prop(COMMENT_TEXT_PROP)
        return None

    def get_prop(self, name: str, default: Any = None) -> Any:
        """Get the value of the first prop with the given name."""
        for prop in self.props or ():
            if prop.name == name:
                return prop.value
        return default

    def get_props(self, name: str) -> List[Any]:
        """Get the values of every prop with the given name, in order."""
        return [prop.value for prop in self.props or () if prop.name == name]

    def add_prop(self, name: str, value: Any) -> None:
        if self.props is None:
            self.props = []
        self.props.append(NodeProp(name, value))

    def append_child(self, child: "Node") -> None:
        if not isinstance(child, Node):
            raise TypeError("Child must be a Node instance")
        if self.children is None:
            self.children = []
        self.children.append(child)

    def _shallow_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type}
        if self.props is not None:
            result["props"] = [prop.to_dict() for prop in self.props]
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert the node and its subtree to the JSON wire format.

        The subtree is walked with an explicit stack, so the depth of the
        tree is not limited by the interpreter's recursion limit.
        """
        result = self._shallow_dict()
        stack = [(self, result)]
        while stack:
            node, data = stack.pop()
            if node.children is None:
                continue
            data["children"] = []
            for child in node.children:
                child_data = child._shallow_dict()
                data["children"].append(child_data)
                stack.append((child, child_data))
        return result

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Node":
        """Build a node from the JSON wire format.

        ``props`` may also be given as a mapping, which is converted to
        ordered pairs. ``None`` entries in ``children`` are skipped.

        Raises:
            ValueError: If data is not a mapping or has no string ``type``
        """
        root = cls._from_mapping(data)
        stack = [(root, data)]
        while stack:
            node, node_data = stack.pop()
            raw_children = node_data.get("children")
            if raw_children is None:
                continue
            if not isinstance(raw_children, list):
                raise ValueError("Node 'children' must be a list")
            node.children = []
            for child_data in raw_children:
                if child_data is None:
                    continue
                child = cls._from_mapping(child_data)
                node.children.append(child)
                stack.append((child, child_data))
        return root

    @classmethod
    def _from_mapping(cls, data: Any) -> "Node":
        """Build a node without its children."""
        if not isinstance(data, abc.Mapping):
            raise ValueError(f"Node data must be a mapping, got {type(data).__name__}")
        node_type = data.get("type")
        if not isinstance(node_type, str):
            raise ValueError("Node data must have a string 'type'")
        return cls(type=node_type, props=_props_from_data(data.get("props")))

    @classmethod
    def from_json(cls, json_str: str) -> "Node":
        return cls.from_dict(json.loads(json_str))


def _props_from_data(raw: Any) -> Optional[List[NodeProp]]:
    if raw is None:
        return None
    if isinstance(raw, abc.Mapping):
        return [NodeProp(str(name), value) for name, value in raw.items()]
    if not isinstance(raw, list):
        raise ValueError("Node 'props' must be a list or a mapping")

    props = []
    for item in raw:
        if not isinstance(item, abc.Mapping) or not isinstance(item.get("name"), str):
            raise ValueError(f"Invalid prop entry: {item!r}")
        # A prop without a value renders its name, like a boolean attribute
        props.append(NodeProp(item["name"], item.get("value", item["name"])))
    return props


def element(
    tag: str,
    props: Union[None, Mapping[str, Any], Iterable[Any]] = None,
    children: Optional[Iterable[Node]] = None
) -> Node:
    """Create an element node.

    Args:
        tag: Tag name, case preserved
        props: Attributes as a mapping, NodeProp objects or (name, value) pairs
        children: Child nodes; an empty iterable leaves the element childless

    Example:
        >>> element("a", {"href": "/"}, [text_node("Home")]).to_dict()["type"]
        'a'
    """
    node = Node(type=tag)
    if props is not None:
        items = props.items() if isinstance(props, abc.Mapping) else props
        for item in items:
            if isinstance(item, NodeProp):
                node.add_prop(item.name, item.value)
            else:
                name, value = item
                node.add_prop(name, value)
    for child in children or ():
        node.append_child(child)
    return node


def text_node(text: str) -> Node:
    return Node(type=TEXT_TYPE, props=[NodeProp(TEXT_CONTENT_PROP, text)])


def comment_node(text: str) -> Node:
    return Node(type=COMMENT_TYPE, props=[NodeProp(COMMENT_TEXT_PROP, text)])


def template_node(children: Iterable[Node]) -> Node:
    """Wrap several top-level nodes in a template node."""
    return Node(type=TEMPLATE_TYPE, children=list(children))


def node_count(tree: Optional[Node]) -> int:
    """Count the nodes of a tree, not counting template wrappers."""
    count = 0
    stack = [tree] if tree is not None else []
    while stack:
        node = stack.pop()
        if not node.is_template:
            count += 1
        stack.extend(node.children or ())
    return count
