"""Configuration objects for parsing and rendering.

Options are immutable dataclasses validated on construction. Sequences given
as lists are stored as tuples so option objects stay hashable and can be
shared between threads.
"""

import json
from collections import abc
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, TypeVar, Union

# HTML void elements; matched case-insensitively
DEFAULT_SELF_CLOSING_TAGS: Tuple[str, ...] = (
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
)

DEFAULT_INDENT = "  "

# Tags dropped by the html_cleanup preset
_CLEANUP_IGNORED_TAGS: Tuple[str, ...] = ("script", "style", "iframe", "noscript")

_OptionsT = TypeVar("_OptionsT", bound="_OptionsMixin")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


def _tag_tuple(value: Any, field_name: str) -> Tuple[str, ...]:
    """Validate a sequence of tag names and return it as a tuple."""
    if isinstance(value, str):
        raise ConfigValidationError(
            f"{field_name} must be a sequence of tag names, not a string",
            field_name=field_name,
            suggestions=[f"Use {field_name}=[{value!r}]"],
        )
    try:
        tags = tuple(value)
    except TypeError as e:
        raise ConfigValidationError(
            f"{field_name} must be a sequence of tag names",
            field_name=field_name,
        ) from e
    for tag in tags:
        if not isinstance(tag, str) or not tag:
            raise ConfigValidationError(
                f"{field_name} entries must be non-empty strings, got {tag!r}",
                field_name=field_name,
            )
    return tags


def _check_bool(options: Any, *names: str) -> None:
    for name in names:
        if not isinstance(getattr(options, name), bool):
            raise ConfigValidationError(f"{name} must be a boolean", field_name=name)


class _OptionsMixin:
    """Serialization and override helpers shared by the option classes."""

    def override(self: _OptionsT, **kwargs: Any) -> _OptionsT:
        """Create a new options object with specific fields replaced.

        Example:
            >>> options = ParserOptions()
            >>> options.override(ignore=["script"]).ignore
            ('script',)
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown option(s) for {type(self).__name__}: {', '.join(unknown)}",
                field_name=unknown[0],
                suggestions=sorted(known),
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = list(value) if isinstance(value, tuple) else value
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        """Create options from a dictionary, rejecting unknown keys."""
        return cls().override(**dict(data))

    @classmethod
    def from_json(cls, json_str: str):
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def resolve(
        cls,
        options: Union[None, Mapping[str, Any], "_OptionsMixin"] = None,
        **overrides: Any
    ):
        """Build effective options from an options object, a dict, or None.

        Keyword overrides are applied on top, so callers can write
        ``parse(markup, ignore=["script"])``.
        """
        if options is None:
            resolved = cls()
        elif isinstance(options, cls):
            resolved = options
        elif isinstance(options, abc.Mapping):
            resolved = cls.from_dict(options)
        else:
            raise ConfigValidationError(
                f"Expected {cls.__name__}, a mapping or None, "
                f"got {type(options).__name__}"
            )
        if overrides:
            resolved = resolved.override(**overrides)
        return resolved


@dataclass(frozen=True)
class ParserOptions(_OptionsMixin):
    """Options controlling how markup is turned into a node tree.

    Attributes:
        ignore: Tag names whose whole subtree is dropped (case-insensitive)
        preserve_whitespace: Keep newline indentation instead of collapsing it
        self_closing_tags: Void elements committed as leaves on ``>``
        include_warnings: Return a ParseResult carrying structural warnings
        include_errors: Return a ParseResult carrying error diagnostics
        correlation_id: Optional ID attached to log records and diagnostics
    """

    ignore: Tuple[str, ...] = ()
    preserve_whitespace: bool = False
    self_closing_tags: Tuple[str, ...] = DEFAULT_SELF_CLOSING_TAGS
    include_warnings: bool = False
    include_errors: bool = False
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate parser options."""
        object.__setattr__(self, "ignore", _tag_tuple(self.ignore, "ignore"))
        object.__setattr__(
            self,
            "self_closing_tags",
            _tag_tuple(self.self_closing_tags, "self_closing_tags"),
        )
        _check_bool(self, "preserve_whitespace", "include_warnings", "include_errors")
        if self.correlation_id is not None and not isinstance(self.correlation_id, str):
            raise ConfigValidationError(
                "correlation_id must be a string or None", field_name="correlation_id"
            )

    @property
    def ignored_tags(self) -> FrozenSet[str]:
        """Lower-cased names of ignored tags."""
        return frozenset(tag.lower() for tag in self.ignore)

    @property
    def void_tags(self) -> FrozenSet[str]:
        """Lower-cased names of void elements."""
        return frozenset(tag.lower() for tag in self.self_closing_tags)

    @property
    def wants_diagnostics(self) -> bool:
        """Check if parse() should return a ParseResult envelope."""
        return self.include_warnings or self.include_errors

    @classmethod
    def strict_xml(cls) -> "ParserOptions":
        """Preset for XML documents: no void elements, whitespace kept."""
        return cls(
            self_closing_tags=(),
            preserve_whitespace=True,
            include_warnings=True,
            include_errors=True,
        )

    @classmethod
    def html_cleanup(cls) -> "ParserOptions":
        """Preset that strips scripts, styles and embedded frames."""
        return cls(ignore=_CLEANUP_IGNORED_TAGS)


@dataclass(frozen=True)
class RenderOptions(_OptionsMixin):
    """Options controlling how a node tree is turned back into markup.

    Attributes:
        pretty: Put children on their own indented lines
        indent: Indentation unit used when pretty printing
        self_closing_tags: Void elements rendered as ``<tag />``
        xml_mode: Render every childless element as ``<tag />``
    """

    pretty: bool = False
    indent: str = DEFAULT_INDENT
    self_closing_tags: Tuple[str, ...] = DEFAULT_SELF_CLOSING_TAGS
    xml_mode: bool = False

    def __post_init__(self) -> None:
        """Validate render options."""
        # An empty indent falls back to the default unit
        if self.indent is None or self.indent == "":
            object.__setattr__(self, "indent", DEFAULT_INDENT)
        if not isinstance(self.indent, str):
            raise ConfigValidationError("indent must be a string", field_name="indent")
        object.__setattr__(
            self,
            "self_closing_tags",
            _tag_tuple(self.self_closing_tags, "self_closing_tags"),
        )
        _check_bool(self, "pretty", "xml_mode")

    @property
    def void_tags(self) -> FrozenSet[str]:
        """Lower-cased names of void elements."""
        return frozenset(tag.lower() for tag in self.self_closing_tags)

    @classmethod
    def xml(cls) -> "RenderOptions":
        """Preset for XML output: every empty element self-closes."""
        return cls(xml_mode=True)

    @classmethod
    def pretty_html(cls, indent: str = DEFAULT_INDENT) -> "RenderOptions":
        """Preset for indented HTML output."""
        return cls(pretty=True, indent=indent)
