"""Normalised variants of a search query.

Text copied out of a page (or produced by a model quoting it) rarely matches
the page byte for byte: curly quotes get straightened, whitespace runs
collapse, words hyphenated across a line break get joined. Each variant here
undoes one such transformation so the search chain can retry with it.
"""

from __future__ import annotations

import re

_SINGLE_QUOTES = re.compile(r"[‘’‚‛]")
_DOUBLE_QUOTES = re.compile(r"[“”„‟]")
_WHITESPACE_RUN = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[^\w\s]")
_LINEBREAK_HYPHEN = re.compile(r"(\w)-\s*\n\s*(\w)")

# Every quote character, straight or typographic
QUOTE_CHARS = frozenset("'\"‘’‚‛“”„‟")

# Quote characters treated as equivalent when matching quote-insensitively
QUOTE_CLASSES: dict[str, str] = {
    "'": "['‘’‚‛]",
    '"': "[\"“”„‟]",
}


def straighten_quotes(text: str) -> str:
    """Replace typographic quotes with their ASCII forms."""
    return _DOUBLE_QUOTES.sub('"', _SINGLE_QUOTES.sub("'", text))


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RUN.sub(" ", text).strip()


def strip_punctuation(text: str) -> str:
    return collapse_whitespace(_PUNCTUATION.sub(" ", text))


def join_hyphenated(text: str) -> str:
    """``word-\\nword`` -> ``wordword``."""
    return _LINEBREAK_HYPHEN.sub(r"\1\2", text)


def flatten_linebreaks(text: str) -> str:
    return collapse_whitespace(text.replace("\n", " "))


def variants(text: str) -> list[str]:
    """Distinct normalised forms of *text*, the original first.

    Order: original, straightened quotes, collapsed whitespace, punctuation
    stripped, de-hyphenated, linebreaks flattened. Duplicates and empty
    strings are dropped.
    """
    candidates = (
        text,
        straighten_quotes(text),
        collapse_whitespace(text),
        strip_punctuation(text),
        join_hyphenated(text),
        flatten_linebreaks(text),
    )
    # dict preserves insertion order
    return [v for v in dict.fromkeys(candidates) if v]
