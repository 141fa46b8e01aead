"""Exception types raised by markup-tree.

Malformed markup never raises; it produces diagnostics instead. The types here
cover contract violations by the caller.
"""


class MarkupTreeError(Exception):
    """Base exception for markup-tree."""


class InvalidInputError(MarkupTreeError, TypeError):
    """Raised when parse() receives something other than a string."""

    def __init__(self, received: object) -> None:
        self.received_type = type(received).__name__
        super().__init__(
            f"Markup input must be a string, got {self.received_type}"
        )
