"""Parser API with progressive disclosure.

Simple calls use the module-level :func:`parse`, which returns the tree
itself. Callers that need diagnostics use :func:`parse_with_diagnostics` or
set ``include_warnings`` / ``include_errors``. Callers parsing many documents
with the same options can reuse a :class:`MarkupParser`.
"""

import time
from typing import Any, Dict, Mapping, Optional, Union

from markup_tree.shared import InvalidInputError, ParserOptions, get_logger
from markup_tree.tree import Node, ParseResult, TreeBuilder

OptionsType = Union[None, ParserOptions, Mapping[str, Any]]

MS_PER_SECOND = 1000  # Milliseconds per second conversion

logger = get_logger(__name__, component="parser_api")


def _check_markup(markup: Any) -> None:
    if not isinstance(markup, str):
        raise InvalidInputError(markup)


def parse(
    markup: str,
    options: OptionsType = None,
    **overrides: Any
) -> Union[Node, ParseResult, None]:
    """Parse HTML or XML markup into a node tree.

    Malformed markup never raises: unmatched and unclosed tags are repaired
    and, when requested, reported as warnings.

    Args:
        markup: Markup text
        options: ParserOptions or an equivalent mapping
        **overrides: Individual option fields, e.g. ``ignore=["script"]``

    Returns:
        The root node, or None for input without nodes. When
        ``include_warnings`` or ``include_errors`` is set, a ParseResult
        wrapping the root node instead.

    Raises:
        InvalidInputError: If markup is not a string
        ConfigValidationError: If an option value is invalid

    Examples:
        >>> parse("<p>Hello</p>").to_dict()
        {'type': 'p', 'children': [{'type': '#text', 'props': [{'name': 'textContent', 'value': 'Hello'}]}]}

        >>> parse("<p>one</p><p>two</p>").type
        'template'

        >>> result = parse("<div><span>x</div>", include_warnings=True)
        >>> [w.details["tag"] for w in result.warnings]
        ['span']
    """
    _check_markup(markup)
    effective = ParserOptions.resolve(options, **overrides)
    result = TreeBuilder(effective).build(markup)
    if effective.wants_diagnostics:
        return result
    return result.result


def parse_with_diagnostics(
    markup: str,
    options: OptionsType = None,
    **overrides: Any
) -> ParseResult:
    """Parse markup and always return the full ParseResult.

    Args:
        markup: Markup text
        options: ParserOptions or an equivalent mapping
        **overrides: Individual option fields

    Returns:
        ParseResult with the tree, diagnostics and performance metrics

    Raises:
        InvalidInputError: If markup is not a string
    """
    _check_markup(markup)
    effective = ParserOptions.resolve(options, **overrides)

    logger.debug(
        "Parsing with diagnostics",
        extra={"content_length": len(markup), "correlation_id": effective.correlation_id}
    )
    return TreeBuilder(effective).build(markup)


class MarkupParser:
    """Reusable parser with fixed options and usage statistics.

    Attributes:
        options: Current parser options
        correlation_id: Correlation ID for request tracking

    Examples:
        Parser reuse:
        >>> parser = MarkupParser(ParserOptions.html_cleanup())
        >>> results = [parser.parse(page) for page in ["<p>a</p>", "<p>b</p>"]]
        >>> parser.statistics["total_parses"]
        2
    """

    def __init__(
        self,
        options: OptionsType = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize parser.

        Args:
            options: ParserOptions or an equivalent mapping (defaults apply)
            correlation_id: Optional correlation ID for request tracking
        """
        self.options = ParserOptions.resolve(options)
        self.correlation_id = correlation_id or self.options.correlation_id

        self.logger = get_logger(__name__, self.correlation_id, "markup_parser")

        self._parse_count = 0
        self._total_processing_time = 0.0
        self._successful_parses = 0
        self._total_warnings = 0

        self.logger.debug(
            "MarkupParser initialized",
            extra={"options": self.options.to_dict()}
        )

    def parse(
        self,
        markup: str,
        options_override: OptionsType = None
    ) -> ParseResult:
        """Parse markup with this parser's options.

        Args:
            markup: Markup text
            options_override: Options to use for this call only

        Returns:
            ParseResult with the tree and its diagnostics

        Raises:
            InvalidInputError: If markup is not a string
        """
        _check_markup(markup)
        start_time = time.time()

        options = self.options
        if options_override is not None:
            options = ParserOptions.resolve(options_override)

        # A builder per call keeps concurrent parses on one instance apart
        result = TreeBuilder(options, self.correlation_id).build(markup)
        processing_time = (time.time() - start_time) * MS_PER_SECOND

        self._parse_count += 1
        self._total_processing_time += processing_time
        self._total_warnings += len(result.warnings)
        if result.success:
            self._successful_parses += 1

        self.logger.info(
            "Parse completed",
            extra={
                "success": result.success,
                "node_count": result.performance.nodes_created,
                "warning_count": len(result.warnings),
                "processing_time_ms": processing_time,
                "total_parses": self._parse_count,
            }
        )
        return result

    def reconfigure(self, options: OptionsType = None, **overrides: Any) -> None:
        """Reconfigure parser with new options.

        Args:
            options: Replacement options; the current ones are kept if None
            **overrides: Individual option fields applied on top
        """
        base = self.options if options is None else options
        self.options = ParserOptions.resolve(base, **overrides)

        self.logger.info(
            "Parser reconfigured",
            extra={"options": self.options.to_dict()}
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_warnings": self._total_warnings,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._total_processing_time = 0.0
        self._successful_parses = 0
        self._total_warnings = 0

        self.logger.info("Parser statistics reset")
