"""Tests for the node data model."""

import json

import pytest

from markup_tree.tree import (
    Node,
    NodeProp,
    comment_node,
    element,
    node_count,
    template_node,
    text_node,
)


class TestNode:
    """Test Node construction and helpers."""

    def test_element_factory(self):
        """Test building an element with attributes and children."""
        node = element("a", {"href": "/", "title": "Home"}, [text_node("Home")])

        assert node.is_element
        assert node.props == [NodeProp("href", "/"), NodeProp("title", "Home")]
        assert node.children == [text_node("Home")]

    def test_element_factory_accepts_pairs(self):
        """Test that pairs keep duplicates, unlike a mapping."""
        node = element("div", [("class", "a"), ("class", "b")])

        assert node.get_props("class") == ["a", "b"]
        assert node.get_prop("class") == "a"

    def test_childless_element_has_no_children_list(self):
        """Test that leaves serialize without a children key."""
        node = element("br", children=[])

        assert node.children is None
        assert node.to_dict() == {"type": "br"}

    def test_text_node(self):
        """Test the text node convention."""
        node = text_node("a < b")

        assert node.type == "#text"
        assert node.is_text
        assert not node.is_element
        assert node.text_content == "a < b"
        assert node.to_dict() == {
            "type": "#text",
            "props": [{"name": "textContent", "value": "a < b"}],
        }

    def test_comment_node(self):
        """Test the comment node convention."""
        node = comment_node(" note ")

        assert node.type == "#comments"
        assert node.is_comment
        assert node.text_content == " note "

    def test_template_node(self):
        """Test the template wrapper convention."""
        node = template_node([element("p"), element("p")])

        assert node.is_template
        assert node.props is None
        assert len(node.children) == 2

    def test_text_content_of_element_is_none(self):
        """Test text_content on an element."""
        assert element("p").text_content is None

    def test_get_prop_default(self):
        """Test get_prop with a missing name."""
        assert element("p").get_prop("id", "none") == "none"

    def test_append_child_requires_node(self):
        """Test that only nodes can be appended."""
        with pytest.raises(TypeError, match="Child must be a Node instance"):
            element("p").append_child("text")  # type: ignore

    def test_type_must_be_string(self):
        """Test Node type validation."""
        with pytest.raises(TypeError, match="Node type must be a string"):
            Node(type=None)  # type: ignore

    def test_props_must_be_list(self):
        """Test that props cannot be a mapping on the model."""
        with pytest.raises(TypeError, match="Node props must be a list"):
            Node(type="p", props={"id": "x"})  # type: ignore


class TestNodeSerialization:
    """Test conversion to and from the wire format."""

    def test_from_dict_nested(self):
        """Test loading a nested tree."""
        data = {
            "type": "ul",
            "props": [{"name": "id", "value": "menu"}],
            "children": [
                {"type": "li", "children": [
                    {"type": "#text", "props": [{"name": "textContent", "value": "One"}]},
                ]},
            ],
        }

        node = Node.from_dict(data)

        assert node.get_prop("id") == "menu"
        assert node.children[0].children[0].text_content == "One"
        assert node.to_dict() == data

    def test_from_dict_props_mapping(self):
        """Test that a props mapping becomes ordered pairs."""
        node = Node.from_dict({"type": "img", "props": {"src": "a.jpg", "alt": ""}})

        assert node.props == [NodeProp("src", "a.jpg"), NodeProp("alt", "")]

    def test_from_dict_prop_without_value(self):
        """Test that a prop without a value takes its name."""
        node = Node.from_dict({"type": "input", "props": [{"name": "disabled"}]})

        assert node.get_prop("disabled") == "disabled"

    def test_from_dict_skips_none_children(self):
        """Test that None children are dropped."""
        node = Node.from_dict({"type": "p", "children": [None, {"type": "br"}]})

        assert node.children == [Node(type="br")]

    def test_from_dict_requires_type(self):
        """Test that a missing type is rejected."""
        with pytest.raises(ValueError, match="string 'type'"):
            Node.from_dict({"props": []})

    def test_from_dict_rejects_bad_props(self):
        """Test that malformed prop entries are rejected."""
        with pytest.raises(ValueError, match="Invalid prop entry"):
            Node.from_dict({"type": "p", "props": ["id"]})

    def test_json_round_trip(self):
        """Test JSON conversion keeps order and duplicates."""
        node = element("p", [("class", "a"), ("class", "b")], [text_node("é")])

        text = node.to_json()

        assert "é" in text
        assert Node.from_json(text) == node
        assert json.loads(text)["props"][1] == {"name": "class", "value": "b"}


class TestNodeCount:
    """Test node counting."""

    def test_node_count_skips_template(self):
        """Test that template wrappers are not counted."""
        tree = template_node([element("p", children=[text_node("a")]), comment_node("c")])

        assert node_count(tree) == 3

    def test_node_count_none(self):
        """Test counting an empty tree."""
        assert node_count(None) == 0


class TestDeepTrees:
    """Test trees nested deeper than the interpreter's recursion limit."""

    DEPTH = 5000

    def chain(self) -> Node:
        root = element("div")
        current = root
        for _ in range(self.DEPTH - 1):
            child = element("div")
            current.append_child(child)
            current = child
        current.append_child(text_node("x"))
        return root

    def test_node_count_deep(self):
        """Test counting a deep chain."""
        assert node_count(self.chain()) == self.DEPTH + 1

    def test_to_dict_deep(self):
        """Test converting a deep chain to the wire format."""
        data = self.chain().to_dict()

        depth = 0
        while data["type"] == "div":
            assert list(data) == ["type", "children"]
            data = data["children"][0]
            depth += 1
        assert depth == self.DEPTH
        assert data == {"type": "#text", "props": [{"name": "textContent", "value": "x"}]}

    def test_from_dict_deep(self):
        """Test loading a deep chain from the wire format."""
        data = {"type": "#text", "props": [{"name": "textContent", "value": "x"}]}
        for _ in range(self.DEPTH):
            data = {"type": "div", "children": [data]}

        node = Node.from_dict(data)

        assert node_count(node) == self.DEPTH + 1

    def test_from_dict_keeps_child_order(self):
        """Test that siblings keep their order."""
        node = Node.from_dict({"type": "ol", "children": [
            {"type": "li", "children": [{"type": "b"}, {"type": "i"}]},
            {"type": "li"},
        ]})

        assert [child.type for child in node.children[0].children] == ["b", "i"]
        assert node.children[1] == Node(type="li")

    def test_from_dict_invalid_nested_children(self):
        """Test that malformed children deep in the tree are rejected."""
        with pytest.raises(ValueError, match="'children' must be a list"):
            Node.from_dict({"type": "p", "children": [{"type": "b", "children": "x"}]})
