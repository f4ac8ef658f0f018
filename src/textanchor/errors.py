"""Error taxonomy for text anchoring and highlighting.

Query validation errors are raised to the caller. Range and anchor errors are
recoverable: the engine facade catches them, logs, and reports failure without
mutating the document. "Not found" is never an exception; lookups return None.
"""

from __future__ import annotations


class TextAnchorError(Exception):
    """Base class for all textanchor errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class QueryValidationError(TextAnchorError):
    """A search query violated the configured length bounds."""

    def __init__(self, message: str, length: int, limit: int) -> None:
        super().__init__(message)
        self.length = length
        self.limit = limit


class QueryTooShortError(QueryValidationError):
    """Query is shorter than ``min_search_length``."""

    def __init__(self, length: int, limit: int) -> None:
        super().__init__(
            f"Search text too short ({length} chars, min: {limit})", length, limit
        )


class QueryTooLongError(QueryValidationError):
    """Query is longer than ``max_search_length``."""

    def __init__(self, length: int, limit: int) -> None:
        super().__init__(
            f"Search text too long ({length} chars, max: {limit})", length, limit
        )


class InvalidRangeError(TextAnchorError):
    """A range cannot be constructed or used (detached nodes, bad bounds)."""


class StaleAnchorError(TextAnchorError):
    """A resolved range no longer covers the text it was resolved for."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"Range text {actual[:50]!r} does not match expected {expected[:50]!r}"
        )
        self.expected = expected
        self.actual = actual


class DecorationLeakError(TextAnchorError):
    """Reconstructed text of a removed wrapper differs from the highlight text.

    Only ever used to describe the condition in a log record; removal still
    applies the best-effort reconstruction.
    """

    def __init__(self, highlight_id: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Highlight {highlight_id}: reconstructed text {actual[:50]!r} "
            f"differs from recorded text {expected[:50]!r}"
        )
        self.highlight_id = highlight_id
        self.expected = expected
        self.actual = actual
