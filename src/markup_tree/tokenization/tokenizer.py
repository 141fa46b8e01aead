"""Single-pass character state machine for HTML/XML markup.

The tokenizer walks the input once, one character at a time. Each character
is fed to :func:`transition`, which applies the rules of the current
:class:`ParserState` and returns the next state. Completed constructs (text
runs, tags, comments, declarations) are handed to a :class:`TokenSink`, which
is responsible for building the tree.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Tuple

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"

# "<!-->" is the shortest comment; it and "<!--->" close with no content
_MIN_COMMENT_LENGTH = len(COMMENT_OPEN) + 1

_QUOTES = ('"', "'")
_NAME_PUNCTUATION = "-:_."


class ParserState(Enum):
    """State machine states for markup tokenization."""

    TEXT = auto()             # Accumulating character data
    TAG_OPEN = auto()         # Reading a tag name after <
    TAG_CLOSE = auto()        # Waiting for > to finish a tag
    ATTRIBUTE_NAME = auto()   # Between or inside attribute names
    ATTRIBUTE_VALUE = auto()  # Reading an attribute value, quoted or not
    COMMENT = auto()          # Inside <!-- ... -->
    DECLARATION = auto()      # Skipping <!DOCTYPE ...> or <?xml ...?>


def is_name_char(char: str) -> bool:
    """Check if character can be part of a tag or attribute name."""
    return char.isalnum() or char in _NAME_PUNCTUATION


def is_name_start_char(char: str) -> bool:
    """Check if character can start a tag name."""
    return char.isalnum() or char == "_"


@dataclass
class TagDraft:
    """Tag under construction, from its ``<`` up to its ``>``."""

    start: int
    name: str = ""
    closing: bool = False
    self_closing: bool = False
    attributes: List[Tuple[str, str]] = field(default_factory=list)

    # Attribute under construction
    attribute_name: str = ""
    attribute_value: str = ""
    has_value: bool = False
    attribute_ready: bool = False
    quote: Optional[str] = None

    def commit_attribute(self) -> None:
        """Append the pending attribute, if any, and reset the attribute buffers.

        An attribute written without ``=`` takes its own name as value.
        """
        if self.attribute_name:
            value = self.attribute_value if self.has_value else self.attribute_name
            self.attributes.append((self.attribute_name, value))
        self.attribute_name = ""
        self.attribute_value = ""
        self.has_value = False
        self.attribute_ready = False
        self.quote = None


class TokenSink(ABC):
    """Receiver of the constructs recognized by the tokenizer."""

    @abstractmethod
    def text(self, content: str, offset: int) -> None:
        """Receive a run of character data starting at offset."""

    @abstractmethod
    def tag(self, draft: TagDraft) -> None:
        """Receive a complete opening, closing or self-closing tag."""

    @abstractmethod
    def comment(self, content: str, offset: int) -> None:
        """Receive the content of a comment, delimiters removed."""

    @abstractmethod
    def declaration(self, offset: int) -> None:
        """Receive notice of a skipped declaration or processing instruction."""

    @abstractmethod
    def incomplete(self, state: "ParserState", offset: int, context: "ParseContext") -> None:
        """Receive notice that the input ended in the middle of a construct."""


@dataclass
class ParseContext:
    """Per-call mutable state of the tokenizer.

    A fresh context is created for every parse, so no state is shared between
    calls.
    """

    markup: str
    sink: TokenSink
    position: int = 0
    text_buffer: str = ""
    text_start: int = 0
    tag: Optional[TagDraft] = None
    comment_buffer: str = ""
    construct_start: int = 0

    def peek(self, distance: int = 1) -> str:
        """Return the character distance positions ahead, or '' past the end."""
        index = self.position + distance
        if index < len(self.markup):
            return self.markup[index]
        return ""

    def append_text(self, char: str) -> None:
        if not self.text_buffer:
            self.text_start = self.position
        self.text_buffer += char

    def flush_text(self) -> None:
        """Hand the accumulated text run to the sink."""
        if self.text_buffer:
            self.sink.text(self.text_buffer, self.text_start)
            self.text_buffer = ""

    def finish_tag(self) -> ParserState:
        """Hand the finished tag draft to the sink and return to text."""
        draft = self.tag
        self.tag = None
        if draft is not None:
            self.sink.tag(draft)
        return ParserState.TEXT


def _process_text(char: str, context: ParseContext) -> ParserState:
    if char != "<":
        context.append_text(char)
        return ParserState.TEXT

    if context.markup.startswith(COMMENT_OPEN, context.position):
        context.flush_text()
        context.construct_start = context.position
        context.comment_buffer = char
        return ParserState.COMMENT

    following = context.peek()
    if is_name_start_char(following) or following == "/":
        context.flush_text()
        context.tag = TagDraft(start=context.position)
        return ParserState.TAG_OPEN
    if following in ("!", "?"):
        context.flush_text()
        context.construct_start = context.position
        return ParserState.DECLARATION

    # A stray < such as "a < b" stays text
    context.append_text(char)
    return ParserState.TEXT


def _process_tag_open(char: str, context: ParseContext) -> ParserState:
    draft = context.tag
    if is_name_char(char):
        draft.name += char
        return ParserState.TAG_OPEN
    if char == "/":
        if not draft.name:
            draft.closing = True
            return ParserState.TAG_OPEN
        draft.self_closing = True
        return ParserState.TAG_CLOSE
    if char == ">":
        return context.finish_tag()
    if char.isspace():
        if draft.closing or not draft.name:
            return ParserState.TAG_CLOSE
        return ParserState.ATTRIBUTE_NAME
    # Anything else ends the name and starts the attribute section
    return ParserState.ATTRIBUTE_NAME


def _process_tag_close(char: str, context: ParseContext) -> ParserState:
    draft = context.tag
    if char == ">":
        return context.finish_tag()
    if char == "/" and not draft.closing:
        draft.self_closing = True
    elif is_name_char(char) and draft.closing and not draft.name:
        # "</ div>"
        draft.name += char
        return ParserState.TAG_OPEN
    return ParserState.TAG_CLOSE


def _process_attribute_name(char: str, context: ParseContext) -> ParserState:
    draft = context.tag
    if is_name_char(char):
        if draft.attribute_ready:
            draft.commit_attribute()
        draft.attribute_name += char
        return ParserState.ATTRIBUTE_NAME
    if char == "=":
        if draft.attribute_name:
            draft.attribute_ready = False
            draft.has_value = True
            return ParserState.ATTRIBUTE_VALUE
        return ParserState.ATTRIBUTE_NAME
    if char.isspace():
        if draft.attribute_name:
            draft.attribute_ready = True
        return ParserState.ATTRIBUTE_NAME
    if char == ">":
        draft.commit_attribute()
        return context.finish_tag()
    if char == "/":
        draft.commit_attribute()
        draft.self_closing = True
        return ParserState.TAG_CLOSE
    return ParserState.ATTRIBUTE_NAME


def _process_attribute_value(char: str, context: ParseContext) -> ParserState:
    draft = context.tag
    if draft.quote is not None:
        if char == draft.quote:
            draft.commit_attribute()
            return ParserState.ATTRIBUTE_NAME
        draft.attribute_value += char
        return ParserState.ATTRIBUTE_VALUE

    if char in _QUOTES and not draft.attribute_value:
        draft.quote = char
        return ParserState.ATTRIBUTE_VALUE
    if char.isspace():
        if draft.attribute_value:
            draft.commit_attribute()
            return ParserState.ATTRIBUTE_NAME
        # Whitespace between = and the value
        return ParserState.ATTRIBUTE_VALUE
    if char == ">":
        draft.commit_attribute()
        return context.finish_tag()
    if char == "/" and context.peek() == ">":
        draft.commit_attribute()
        draft.self_closing = True
        return ParserState.TAG_CLOSE
    draft.attribute_value += char
    return ParserState.ATTRIBUTE_VALUE


def _process_comment(char: str, context: ParseContext) -> ParserState:
    context.comment_buffer += char
    buffer = context.comment_buffer
    if len(buffer) >= _MIN_COMMENT_LENGTH and buffer.endswith(COMMENT_CLOSE):
        content = buffer[len(COMMENT_OPEN):-len(COMMENT_CLOSE)]
        context.comment_buffer = ""
        context.sink.comment(content, context.construct_start)
        return ParserState.TEXT
    return ParserState.COMMENT


def _process_declaration(char: str, context: ParseContext) -> ParserState:
    if char == ">":
        context.sink.declaration(context.construct_start)
        return ParserState.TEXT
    return ParserState.DECLARATION


def transition(state: ParserState, char: str, context: ParseContext) -> ParserState:
    """Apply one character to the state machine.

    Args:
        state: Current state
        char: Character at ``context.position``
        context: Per-call buffers and the sink receiving completed constructs

    Returns:
        The state to use for the next character
    """
    if state == ParserState.TEXT:
        return _process_text(char, context)
    elif state == ParserState.TAG_OPEN:
        return _process_tag_open(char, context)
    elif state == ParserState.TAG_CLOSE:
        return _process_tag_close(char, context)
    elif state == ParserState.ATTRIBUTE_NAME:
        return _process_attribute_name(char, context)
    elif state == ParserState.ATTRIBUTE_VALUE:
        return _process_attribute_value(char, context)
    elif state == ParserState.COMMENT:
        return _process_comment(char, context)
    elif state == ParserState.DECLARATION:
        return _process_declaration(char, context)
    raise ValueError(f"Unknown parser state: {state}")


class MarkupTokenizer:
    """Drives :func:`transition` over a whole markup string."""

    def __init__(self, sink: TokenSink) -> None:
        self.sink = sink
        self.state = ParserState.TEXT

    def run(self, markup: str) -> ParserState:
        """Feed every character of markup to the state machine.

        Trailing text is flushed at the end of input. If the input ends inside
        a tag or comment, the sink is told through ``incomplete``.

        Returns:
            The state the machine was in when the input ran out
        """
        context = ParseContext(markup=markup, sink=self.sink)
        state = ParserState.TEXT
        for position, char in enumerate(markup):
            context.position = position
            state = transition(state, char, context)
        context.position = len(markup)
        self.state = state

        context.flush_text()
        if state != ParserState.TEXT:
            offset = context.tag.start if context.tag is not None else context.construct_start
            self.sink.incomplete(state, offset, context)
        return state
