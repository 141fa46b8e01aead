"""Tests for the parser API and parse/render round trips."""

import re
from unittest.mock import patch

import pytest
from lxml import etree

from markup_tree import (
    InvalidInputError,
    MarkupParser,
    ParseResult,
    ParserOptions,
    parse,
    parse_with_diagnostics,
    render,
)
from markup_tree.shared import ConfigValidationError
from markup_tree.tree import TreeBuilder, element, node_count, text_node

DEPTH = 5000
DEEP_MARKUP = "<div>" * DEPTH + "x" + "</div>" * DEPTH


class TestParseFunction:
    """Test the level 1 parse function."""

    def test_returns_node(self):
        """Test that parse returns the root node by default."""
        assert parse("<p>x</p>") == element("p", children=[text_node("x")])

    def test_returns_none_for_empty_input(self):
        """Test empty input."""
        assert parse("") is None

    @pytest.mark.parametrize("markup", [None, b"<p></p>", 42, ["<p>"]])
    def test_non_string_input_raises(self, markup):
        """Test the input contract."""
        with pytest.raises(InvalidInputError):
            parse(markup)

    def test_invalid_input_is_type_error(self):
        """Test that callers can catch TypeError."""
        with pytest.raises(TypeError, match="must be a string"):
            parse(None)

    def test_include_warnings_returns_envelope(self):
        """Test that diagnostics requests return a ParseResult."""
        result = parse("<div><span>x</div>", include_warnings=True)

        assert isinstance(result, ParseResult)
        assert [w.details["tag"] for w in result.warnings] == ["span"]
        assert set(result.to_dict()) == {"result", "warnings", "errors"}

    def test_include_errors_returns_envelope(self):
        """Test the errors toggle."""
        assert isinstance(parse("<p>", include_errors=True), ParseResult)

    def test_options_object_and_overrides(self):
        """Test combining an options object with keyword overrides."""
        options = ParserOptions.html_cleanup()

        tree = parse("<div><style>x</style><b>y</b></div>", options, preserve_whitespace=True)

        assert tree == element("div", children=[element("b", children=[text_node("y")])])

    def test_options_mapping(self):
        """Test options given as a mapping."""
        tree = parse("<div><x>1</x>2</div>", {"ignore": ["X"]})

        assert tree == element("div", children=[text_node("2")])

    def test_unknown_option_rejected(self):
        """Test that misspelled options raise."""
        with pytest.raises(ConfigValidationError):
            parse("<p></p>", preserveWhitespace=True)

    def test_parse_with_diagnostics(self):
        """Test that parse_with_diagnostics always returns a ParseResult."""
        result = parse_with_diagnostics("<p>x</p>")

        assert isinstance(result, ParseResult)
        assert result.success
        assert result.performance.characters_processed == 8

    def test_parse_with_diagnostics_rejects_bytes(self):
        """Test the input contract of parse_with_diagnostics."""
        with pytest.raises(InvalidInputError):
            parse_with_diagnostics(b"<p></p>")

    def test_independent_calls(self):
        """Test that a call does not affect the next one."""
        parse("<div><span>", include_warnings=True)

        result = parse("<p></p>", include_warnings=True)

        assert result.warnings == []


class TestRoundTrip:
    """Test parse followed by render."""

    @pytest.mark.parametrize("markup", [
        '<div class="a"><p>Hello <b>world</b></p><br /><!-- c --></div>',
        '<ul id="menu"><li><a href="/one">One</a></li><li><a href="/two">Two</a></li></ul>',
        '<form><input type="checkbox" checked="checked" /><label for="x">X</label></form>',
        "<svg:svg><svg:rect width=\"1\" height=\"1\"></svg:rect></svg:svg>",
        '<p data-a="1" data-a="2">dup</p>',
        "<table><tr><td>1</td><td>2</td></tr></table>",
    ])
    def test_well_formed_round_trip(self, markup):
        """Test that well-formed markup renders back unchanged."""
        assert render(parse(markup)) == markup

    def test_round_trip_modulo_indentation(self):
        """Test that indentation between tags is the only difference."""
        markup = "<ul>\n  <li>a</li>\n  <li>b</li>\n</ul>"

        assert render(parse(markup)) == "<ul><li>a</li><li>b</li></ul>"

    def test_deep_nesting_round_trip(self):
        """Test a document nested deeper than the recursion limit."""
        assert render(parse(DEEP_MARKUP)) == DEEP_MARKUP

    def test_stable_after_first_pass(self):
        """Test that a second round trip changes nothing."""
        once = render(parse("<div><p>a<br>b</div><i>x"))

        assert render(parse(once)) == once

    def test_entities_escaped_again(self):
        """Test that entity text is escaped, not decoded."""
        assert render(parse("<p>&amp;</p>")) == "<p>&amp;amp;</p>"

    def test_single_quoted_attribute_normalized(self):
        """Test attribute quote normalization on a void element."""
        assert render(parse("<img src='a.jpg' />")) == '<img src="a.jpg" />'

    def test_quote_in_attribute_escaped(self):
        """Test double quotes inside attribute values."""
        assert render(parse("<p title='Say \"Hi\"'>x</p>")) == '<p title="Say &quot;Hi&quot;">x</p>'

    def test_multiple_roots(self):
        """Test that top-level siblings render without the wrapper."""
        tree = parse("<p>a</p><p>b</p>")

        assert tree.type == "template"
        assert render(tree) == "<p>a</p><p>b</p>"

    def test_ignored_subtree_absent_from_output(self):
        """Test that ignored tags disappear from the output."""
        markup = "<div>a<Script>alert(1)</Script><script>x</script>b</div>"

        assert render(parse(markup, ignore=["script"])) == "<div>ab</div>"

    def test_boolean_attribute(self):
        """Test that a name-only attribute renders with its name as value."""
        assert render(parse("<input disabled>")) == '<input disabled="disabled" />'

    def test_doctype_dropped(self):
        """Test that declarations are not rendered."""
        assert render(parse("<!DOCTYPE html><html><body></body></html>")) == (
            "<html><body></body></html>"
        )

    def test_pretty_only_adds_whitespace(self):
        """Test that pretty output differs from compact output only in whitespace."""
        tree = parse('<div id="x"><h1>Title</h1><p>Some <em>text</em></p><br><!--c--></div>')

        compact = render(tree)
        pretty = render(tree, pretty=True)

        assert pretty != compact
        assert re.sub(r"\s+", "", pretty) == re.sub(r"\s+", "", compact)

    def test_pretty_output_reparses_to_same_shape(self):
        """Test that pretty output parses back to the same tree."""
        tree = parse("<div><p>a</p><p>b</p></div>")

        assert parse(render(tree, pretty=True)) == tree

    def test_xml_mode_output_is_well_formed(self):
        """Test that XML-mode output is accepted by an XML parser."""
        tree = parse(
            '<?xml version="1.0"?><catalog><book id="b1"><title>A &amp; B</title>'
            "<price/><note>x < y</note><empty></empty></book></catalog>",
            ParserOptions.strict_xml(),
        ).result

        markup = render(tree, xml_mode=True)
        root = etree.fromstring(markup)

        assert root.tag == "catalog"
        assert root.find("book").get("id") == "b1"
        assert root.find("book/note").text == "x < y"
        assert len(root.find("book/empty")) == 0

    def test_repaired_html_is_well_formed_xml(self):
        """Test that repaired markup renders as well-formed XML."""
        tree = parse("<div><p>one<p>two</div><span>")

        wrapped = render(element("root", children=[tree]), xml_mode=True)

        assert etree.fromstring(wrapped).tag == "root"


class TestMarkupParser:
    """Test the reusable parser class."""

    def test_parse_returns_result(self):
        """Test that MarkupParser.parse always returns a ParseResult."""
        parser = MarkupParser()

        result = parser.parse("<p>x</p>")

        assert isinstance(result, ParseResult)
        assert result.result == element("p", children=[text_node("x")])

    def test_parse_rejects_non_string(self):
        """Test the input contract."""
        with pytest.raises(InvalidInputError):
            MarkupParser().parse(None)

    def test_statistics(self):
        """Test usage statistics across parses."""
        parser = MarkupParser(correlation_id="batch-1")

        parser.parse("<p>x</p>")
        parser.parse("<div><span></div>")

        stats = parser.statistics
        assert stats["total_parses"] == 2
        assert stats["successful_parses"] == 2
        assert stats["success_rate"] == 1.0
        assert stats["total_warnings"] == 1
        assert stats["correlation_id"] == "batch-1"

    def test_reset_statistics(self):
        """Test clearing statistics."""
        parser = MarkupParser()
        parser.parse("<p></p>")

        parser.reset_statistics()

        assert parser.statistics["total_parses"] == 0
        assert parser.statistics["average_processing_time_ms"] == 0.0

    def test_options_override_for_one_call(self):
        """Test per-call options."""
        parser = MarkupParser(ParserOptions(ignore=["b"]))

        overridden = parser.parse("<p><b>x</b></p>", options_override={"ignore": []})
        default = parser.parse("<p><b>x</b></p>")

        assert overridden.result.children[0].type == "b"
        assert default.result.children is None

    def test_reconfigure(self):
        """Test replacing options on a parser."""
        parser = MarkupParser()

        parser.reconfigure(preserve_whitespace=True)

        assert parser.options.preserve_whitespace is True
        assert parser.parse("<p>\n x</p>").result.children == [text_node("\n x")]

    def test_correlation_id_from_options(self):
        """Test that the options correlation ID is used by default."""
        parser = MarkupParser(ParserOptions(correlation_id="req-9"))

        result = parser.parse("<p>")

        assert result.correlation_id == "req-9"
        assert result.warnings[0].correlation_id == "req-9"

    def test_failed_parse_counted(self):
        """Test that failed parses are counted but not as successful."""
        parser = MarkupParser()

        with patch("markup_tree.tree.builder.MarkupTokenizer.run", side_effect=RuntimeError("x")):
            result = parser.parse("<p></p>")

        assert result.success is False
        assert parser.statistics["total_parses"] == 1
        assert parser.statistics["successful_parses"] == 0

    def test_deep_nesting(self):
        """Test that deep documents parse and report their size."""
        result = MarkupParser().parse(DEEP_MARKUP)

        assert result.success
        assert result.warnings == []
        assert result.node_count == DEPTH + 1
        assert result.performance.max_depth == DEPTH
        assert result.summary()["node_count"] == DEPTH + 1
        assert node_count(result.result) == result.performance.nodes_created

    def test_fresh_builder_per_call(self):
        """Test that calls on one parser do not share builder state."""
        parser = MarkupParser()

        with patch("markup_tree.api.parser.TreeBuilder", wraps=TreeBuilder) as builder_cls:
            first = parser.parse("<div><span>")
            second = parser.parse("<p></p>")

        assert builder_cls.call_count == 2
        assert len(first.warnings) == 2
        assert second.warnings == []
