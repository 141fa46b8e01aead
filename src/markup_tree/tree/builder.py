"""Tree building for markup parsing.

:class:`TreeBuilder` receives the constructs recognized by the tokenizer and
assembles them into a :class:`~markup_tree.tree.nodes.Node` tree. Open
elements are tracked on an explicit ancestor stack, so the finished tree holds
no parent references. Structural anomalies (unmatched closing tags, elements
left open at the end of input) never abort the build; they are recorded as
diagnostics on the :class:`ParseResult`.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from markup_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ParserOptions,
    PerformanceMetrics,
    get_logger,
)
from markup_tree.shared.logging import preview
from markup_tree.tokenization import (
    COMMENT_OPEN,
    MarkupTokenizer,
    ParseContext,
    ParserState,
    TagDraft,
    TokenSink,
)
from markup_tree.tree.nodes import (
    Node,
    NodeProp,
    comment_node,
    node_count,
    template_node,
    text_node,
)

# A line break and the indentation that follows it
_LINE_BREAK_INDENT = re.compile(r"\r?\n\s*")


@dataclass
class ParseResult:
    """Result of a parse: the tree plus everything noticed while building it.

    Parsing never fails on malformed markup, so ``result`` always holds the
    best-effort tree (``None`` when the input produced no nodes) and
    ``diagnostics`` explains what was repaired or skipped.
    """

    result: Optional[Node] = None
    success: bool = True

    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    @property
    def warnings(self) -> List[DiagnosticEntry]:
        """Structural warnings, in the order they were found."""
        return self.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)

    @property
    def errors(self) -> List[DiagnosticEntry]:
        """Error and critical diagnostics, in the order they were found."""
        return [
            diag for diag in self.diagnostics
            if diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
        ]

    @property
    def node_count(self) -> int:
        return node_count(self.result)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        entry = DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        )
        self.diagnostics.append(entry)

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return bool(self.errors)

    def has_warnings(self) -> bool:
        """Check if result contains any structural warnings."""
        return bool(self.warnings)

    def to_dict(
        self,
        include_warnings: bool = True,
        include_errors: bool = True
    ) -> Dict[str, Any]:
        """Convert to the ``{result, warnings?, errors?}`` envelope.

        Args:
            include_warnings: Add the ``warnings`` list
            include_errors: Add the ``errors`` list

        Returns:
            JSON-friendly dictionary; ``result`` is None for empty input
        """
        envelope: Dict[str, Any] = {
            "result": self.result.to_dict() if self.result is not None else None,
        }
        if include_warnings:
            envelope["warnings"] = [diag.to_dict() for diag in self.warnings]
        if include_errors:
            envelope["errors"] = [diag.to_dict() for diag in self.errors]
        return envelope

    def summary(self) -> Dict[str, Any]:
        """Get a short summary of the parse."""
        return {
            "success": self.success,
            "node_count": self.node_count,
            "warning_count": len(self.warnings),
            "error_count": len(self.errors),
            "processing_time_ms": self.performance.processing_time_ms,
            "correlation_id": self.correlation_id,
        }


@dataclass
class _Frame:
    """Open element on the ancestor stack."""

    node: Node
    offset: int
    # True when this element or one of its ancestors is ignored
    ignored: bool = False


class TreeBuilder(TokenSink):
    """Builds a node tree from markup in a single pass.

    A builder can be reused; every call to :meth:`build` starts from fresh
    state.
    """

    COMPONENT = "tree_builder"

    def __init__(
        self,
        options: Optional[ParserOptions] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            options: Parser options; defaults to ParserOptions()
            correlation_id: Optional correlation ID for request tracking
        """
        self.options = options or ParserOptions()
        self.correlation_id = correlation_id or self.options.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, self.COMPONENT)

        self._ignored_tags = self.options.ignored_tags
        self._void_tags = self.options.void_tags

        self._result = ParseResult(correlation_id=self.correlation_id)
        self._roots: List[Node] = []
        self._stack: List[_Frame] = []
        self._nodes_created = 0
        self._max_depth = 0

    def build(self, markup: str) -> ParseResult:
        """Parse markup into a tree.

        Args:
            markup: HTML or XML text

        Returns:
            ParseResult holding the tree and the diagnostics
        """
        start_time = time.time()
        self._reset_state()
        result = self._result

        self.logger.debug(
            "Starting tree building",
            extra={"content_length": len(markup), "content_preview": preview(markup)}
        )

        try:
            MarkupTokenizer(self).run(markup)
            self._close_unclosed_elements()
            result.result = self._root()
        except Exception as e:
            # Keep whatever was built before the failure
            self.logger.exception(
                "Tree building failed",
                extra={"exception_type": type(e).__name__}
            )
            result.success = False
            result.result = self._root()
            result.add_diagnostic(
                DiagnosticSeverity.CRITICAL,
                f"Tree building failed: {e}",
                self.COMPONENT,
                details={"exception_type": type(e).__name__}
            )

        performance = result.performance
        performance.processing_time_ms = (time.time() - start_time) * 1000
        performance.characters_processed = len(markup)
        performance.nodes_created = self._nodes_created
        performance.max_depth = self._max_depth

        self.logger.info(
            "Tree building completed",
            extra={
                "node_count": self._nodes_created,
                "warning_count": len(result.warnings),
                "processing_time_ms": performance.processing_time_ms,
            }
        )
        return result

    def _reset_state(self) -> None:
        self._result = ParseResult(correlation_id=self.correlation_id)
        self._roots = []
        self._stack = []
        self._nodes_created = 0
        self._max_depth = 0

    @property
    def _inside_ignored(self) -> bool:
        return bool(self._stack) and self._stack[-1].ignored

    def _attach(self, node: Node) -> None:
        """Append node to the current insertion point."""
        if self._stack:
            self._stack[-1].node.append_child(node)
        else:
            self._roots.append(node)
        self._nodes_created += 1

    def _root(self) -> Optional[Node]:
        if not self._roots:
            return None
        if len(self._roots) == 1:
            return self._roots[0]
        return template_node(self._roots)

    def _warn(self, message: str, offset: int, tag: str) -> None:
        self._result.add_diagnostic(
            DiagnosticSeverity.WARNING,
            message,
            self.COMPONENT,
            position={"offset": offset},
            details={"tag": tag}
        )
        self.logger.warning(message, extra={"offset": offset, "tag": tag})

    # TokenSink interface

    def text(self, content: str, offset: int) -> None:
        if self._inside_ignored:
            return
        if not self.options.preserve_whitespace:
            content = _LINE_BREAK_INDENT.sub("", content)
        if content:
            self._attach(text_node(content))

    def comment(self, content: str, offset: int) -> None:
        if not self._inside_ignored:
            self._attach(comment_node(content))

    def declaration(self, offset: int) -> None:
        self._result.add_diagnostic(
            DiagnosticSeverity.INFO,
            "Markup declaration ignored",
            self.COMPONENT,
            position={"offset": offset}
        )
        self.logger.debug("Markup declaration ignored", extra={"offset": offset})

    def tag(self, draft: TagDraft) -> None:
        if draft.closing:
            self._close_element(draft)
        else:
            self._open_element(draft)

    def incomplete(self, state: ParserState, offset: int, context: ParseContext) -> None:
        if state == ParserState.COMMENT:
            self._warn("Unterminated comment kept at end of input", offset, "#comments")
            self.comment(context.comment_buffer[len(COMMENT_OPEN):], offset)
        elif state == ParserState.DECLARATION:
            self._warn("Unterminated declaration dropped at end of input", offset, "")
        else:
            name = context.tag.name if context.tag is not None else ""
            self._warn(f"Incomplete tag <{name}> dropped at end of input", offset, name)

    # Element handling

    def _open_element(self, draft: TagDraft) -> None:
        node = Node(type=draft.name)
        if draft.attributes:
            node.props = [NodeProp(name, value) for name, value in draft.attributes]

        lowered = draft.name.lower()
        ignored = self._inside_ignored or lowered in self._ignored_tags
        if not ignored:
            self._attach(node)

        if draft.self_closing or lowered in self._void_tags:
            return

        self._stack.append(_Frame(node=node, offset=draft.start, ignored=ignored))
        self._max_depth = max(self._max_depth, len(self._stack))

    def _find_open_element(self, name: str) -> Optional[int]:
        """Find the stack index of the innermost open element named name.

        An exact match wins over a case-insensitive one.
        """
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index].node.type == name:
                return index
        lowered = name.lower()
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index].node.type.lower() == lowered:
                return index
        return None

    def _close_element(self, draft: TagDraft) -> None:
        name = draft.name
        if not name:
            self._warn("Closing tag without a name ignored", draft.start, "")
            return

        index = self._find_open_element(name)
        if index is None:
            self._warn(
                f"Closing tag </{name}> has no matching opening tag", draft.start, name
            )
            return

        while len(self._stack) > index + 1:
            frame = self._stack.pop()
            self._warn(
                f"Tag <{frame.node.type}> implicitly closed by </{name}>",
                frame.offset,
                frame.node.type,
            )
        self._stack.pop()

    def _close_unclosed_elements(self) -> None:
        """Report every element still open at the end of input, innermost first."""
        while self._stack:
            frame = self._stack.pop()
            self._warn(f"Unclosed tag <{frame.node.type}>", frame.offset, frame.node.type)
