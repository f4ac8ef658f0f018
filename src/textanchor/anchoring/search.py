"""Cascading text search over the document snapshot.

``SearchStrategyChain.find`` tries strategies of increasing tolerance in a
fixed order and returns the first hit:

1. exact        literal match on the concatenated snapshot text
2. section      exact match restricted to a named section (and sentence)
3. normalized   exact match of each normalised query variant
4. fuzzy        overlapping windows of a long query, expanded back outward
5. partial      progressively shorter leading prefixes

Hits are memoised in a ``SearchCache`` keyed by ``(text, options)``. Misses
are never cached: a later structural edit may make the text findable.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field, replace
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from textanchor.anchoring import range_anchor
from textanchor.anchoring.normalizer import (
    QUOTE_CHARS,
    QUOTE_CLASSES,
    collapse_whitespace,
    straighten_quotes,
    variants,
)
from textanchor.anchoring.sections import (
    find_section_elements,
    iter_section_scope,
    sentence_spans,
)
from textanchor.errors import InvalidRangeError, QueryTooLongError, QueryTooShortError

if TYPE_CHECKING:
    from collections.abc import Callable

    from textanchor.anchoring.cache import SearchCache
    from textanchor.anchoring.text_index import Snapshot, TextNodeIndex
    from textanchor.config import SearchConfig
    from textanchor.document.ranges import Range

logger = logging.getLogger(__name__)

StrategyName = Literal["exact", "section", "normalized", "fuzzy", "partial"]

# Fuzzy segment matching only kicks in above this query length
FUZZY_MIN_QUERY_LENGTH = 60
# Windows shorter than this (after trimming) are too ambiguous to try
FUZZY_MIN_SEGMENT_LENGTH = 15

PARTIAL_MIN_LENGTH = 20
PARTIAL_MAX_LENGTH = 60
PARTIAL_STEP = 10


@dataclass(frozen=True)
class SearchOptions:
    """Per-call search options. Hashable so it can be part of a cache key."""

    exact_match: bool = False
    max_results: int = 10
    section: str | None = None
    sentence_index: int | None = None
    fuzzy_segment_length: int = 40
    fuzzy_segment_overlap: int = 20
    case_sensitive: bool = False
    whole_words: bool = False
    normalize_whitespace: bool = True

    def __post_init__(self) -> None:
        if self.max_results < 1:
            msg = f"max_results must be positive, got {self.max_results}"
            raise ValueError(msg)
        if self.fuzzy_segment_length < 1:
            msg = "fuzzy_segment_length must be positive"
            raise ValueError(msg)
        if not 0 <= self.fuzzy_segment_overlap < self.fuzzy_segment_length:
            msg = "fuzzy_segment_overlap must be in [0, fuzzy_segment_length)"
            raise ValueError(msg)
        if self.sentence_index is not None and self.sentence_index < 0:
            msg = "sentence_index must not be negative"
            raise ValueError(msg)

    @classmethod
    def from_config(cls, config: SearchConfig, **overrides: object) -> SearchOptions:
        base = cls(
            max_results=config.max_results,
            fuzzy_segment_length=config.fuzzy_segment_length,
            fuzzy_segment_overlap=config.fuzzy_segment_overlap,
            case_sensitive=config.case_sensitive,
            whole_words=config.whole_words,
            normalize_whitespace=config.normalize_whitespace,
        )
        return replace(base, **overrides) if overrides else base


@dataclass(frozen=True)
class MatchResult:
    """A located span. Never mutated after creation.

    ``char_start``/``char_end`` are offsets into the document-root snapshot
    text at the time of the search.
    """

    range: Range
    strategy_used: StrategyName
    matched_text: str
    char_start: int
    char_end: int


@dataclass
class SearchStats:
    searches: int = 0
    hits: int = 0
    misses: int = 0
    cache_hits: int = 0
    by_strategy: dict[str, int] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        """Percentage of searches that found something."""
        return self.hits / self.searches * 100 if self.searches else 0.0

    @property
    def cache_hit_rate(self) -> float:
        """Percentage of hits served from the cache."""
        return self.cache_hits / self.hits * 100 if self.hits else 0.0

    def as_dict(self) -> dict[str, object]:
        return {
            **asdict(self),
            "hit_rate": f"{self.hit_rate:.2f}%",
            "cache_hit_rate": f"{self.cache_hit_rate:.2f}%",
        }


# ---------------------------------------------------------------------------
# Pattern construction
# ---------------------------------------------------------------------------


def _escape(text: str, fold_quotes: bool) -> str:
    if not fold_quotes:
        return re.escape(text)
    return "".join(
        QUOTE_CLASSES.get(straighten_quotes(ch)) or re.escape(ch) for ch in text
    )


@lru_cache(maxsize=512)
def compile_query(
    query: str,
    *,
    case_sensitive: bool = False,
    whole_words: bool = False,
    normalize_whitespace: bool = True,
    fold_quotes: bool = False,
) -> re.Pattern[str] | None:
    """Regex matching *query* literally, per the matching flags.

    With ``normalize_whitespace`` any whitespace run in the query matches any
    whitespace run in the document. With ``fold_quotes`` straight and curly
    quotes are interchangeable. Returns None for a query with no content.
    """
    if normalize_whitespace:
        tokens = query.split()
        if not tokens:
            return None
        body = r"\s+".join(_escape(token, fold_quotes) for token in tokens)
    else:
        if not query:
            return None
        body = _escape(query, fold_quotes)
    if whole_words:
        body = rf"(?<!\w){body}(?!\w)"
    return re.compile(body, 0 if case_sensitive else re.IGNORECASE)


def _pattern(
    query: str, options: SearchOptions, fold_quotes: bool = False
) -> re.Pattern[str] | None:
    return compile_query(
        query,
        case_sensitive=options.case_sensitive,
        whole_words=options.whole_words,
        normalize_whitespace=options.normalize_whitespace,
        fold_quotes=fold_quotes,
    )


def find_span(
    haystack: str, query: str, options: SearchOptions, fold_quotes: bool = False
) -> tuple[int, int] | None:
    """``(start, end)`` of the first match of *query* in *haystack*."""
    pattern = _pattern(query, options, fold_quotes)
    if pattern is None:
        return None
    match = pattern.search(haystack)
    return match.span() if match else None


def split_into_segments(text: str, length: int, overlap: int) -> list[str]:
    """Overlapping, trimmed windows of *text*, each at most *length* chars."""
    step = length - overlap
    if step <= 0:
        msg = "Segment overlap must be smaller than segment length"
        raise ValueError(msg)
    segments = []
    for start in range(0, len(text), step):
        segment = text[start : start + length].strip()
        if segment:
            segments.append(segment)
    return segments


def prefix_lengths(query_length: int) -> list[int]:
    """Prefix lengths for partial matching, longest first, ending at 20.

    The full query is never included; exact matching already tried it.
    """
    upper = min(PARTIAL_MAX_LENGTH, query_length - 1)
    if upper < PARTIAL_MIN_LENGTH:
        return []
    lengths = list(range(upper, PARTIAL_MIN_LENGTH, -PARTIAL_STEP))
    lengths.append(PARTIAL_MIN_LENGTH)
    return lengths


def _equivalent(a: str, b: str, options: SearchOptions) -> bool:
    a, b = collapse_whitespace(a), collapse_whitespace(b)
    if not options.case_sensitive:
        a, b = a.casefold(), b.casefold()
    return a == b


def expand_window(
    haystack: str,
    window: tuple[int, int],
    segment: str,
    query: str,
    options: SearchOptions,
) -> tuple[int, int] | None:
    """Grow a window match by the query text around *segment*.

    The window is extended left by the number of query characters before
    *segment* and right by the number after it. The expansion is accepted
    only if the resulting span equals *query* up to whitespace collapsing
    (and case, when matching case-insensitively).
    """
    index_in_query = query.find(segment)
    if index_in_query == -1:
        return None
    before = index_in_query
    after = len(query) - (index_in_query + len(segment))
    start = max(0, window[0] - before)
    end = min(len(haystack), window[1] + after)
    if _equivalent(haystack[start:end], query, options):
        return start, end
    return None


# ---------------------------------------------------------------------------
# Strategy chain
# ---------------------------------------------------------------------------

class SearchStrategyChain:
    """Ordered fallback search with result memoisation.

    Args:
        index: Snapshot source for the document being searched.
        config: Validated query bounds and option defaults.
        cache: Memo of successful searches.
    """

    def __init__(
        self,
        index: TextNodeIndex,
        config: SearchConfig,
        cache: SearchCache[MatchResult],
    ) -> None:
        self.index = index
        self.config = config
        self.cache = cache
        self.stats = SearchStats()

    def default_options(self, **overrides: object) -> SearchOptions:
        return SearchOptions.from_config(self.config, **overrides)

    def validate(self, text: str) -> None:
        """Enforce the configured query length bounds.

        Raises:
            TypeError: *text* is not a string.
            QueryTooShortError / QueryTooLongError: Length out of bounds.
        """
        if not isinstance(text, str):
            msg = f"Search text must be a string, got {type(text).__name__}"
            raise TypeError(msg)
        if len(text) < self.config.min_search_length:
            raise QueryTooShortError(len(text), self.config.min_search_length)
        if len(text) > self.config.max_search_length:
            raise QueryTooLongError(len(text), self.config.max_search_length)

    def _strategies(
        self, options: SearchOptions
    ) -> list[tuple[StrategyName, Callable[..., MatchResult | None]]]:
        strategies: list[tuple[StrategyName, Callable[..., MatchResult | None]]] = [
            ("exact", self._find_exact)
        ]
        if options.section:
            strategies.append(("section", self._find_in_section))
        if not options.exact_match:
            strategies.extend(
                [
                    ("normalized", self._find_normalized),
                    ("fuzzy", self._find_fuzzy),
                    ("partial", self._find_partial),
                ]
            )
        return strategies

    def find(
        self, text: str, options: SearchOptions | None = None
    ) -> MatchResult | None:
        """Locate *text* in the document, or return None.

        A cached hit is returned as is, without re-checking that its range
        is still attached; callers must re-validate before using it.

        The section strategy only runs after a document-wide exact miss, and
        a section's text is part of the document text, so it cannot succeed
        where exact matching failed.
        """
        self.validate(text)
        options = options or self.default_options()
        self.stats.searches += 1

        key = (text, options)
        cached = self.cache.get(key)
        if cached is not None:
            self.stats.cache_hits += 1
            self.stats.hits += 1
            logger.debug("Search cache hit for %r", text[:50])
            return cached

        snapshot = self.index.snapshot()
        for name, strategy in self._strategies(options):
            try:
                result = strategy(text, options, snapshot)
            except InvalidRangeError as exc:
                logger.debug("Strategy %s failed for %r: %s", name, text[:50], exc)
                continue
            if result is not None:
                self.stats.hits += 1
                self.stats.by_strategy[name] = self.stats.by_strategy.get(name, 0) + 1
                self.cache.set(key, result)
                logger.debug(
                    "Found %r via %s at [%d, %d)",
                    text[:50],
                    name,
                    result.char_start,
                    result.char_end,
                )
                return result

        self.stats.misses += 1
        logger.debug("No strategy matched %r", text[:50])
        return None

    def find_all(
        self, text: str, options: SearchOptions | None = None
    ) -> list[MatchResult]:
        """Every exact occurrence of *text*, up to ``options.max_results``."""
        self.validate(text)
        options = options or self.default_options()
        self.stats.searches += 1

        snapshot = self.index.snapshot()
        pattern = _pattern(text, options)
        results: list[MatchResult] = []
        if pattern is not None:
            for match in pattern.finditer(snapshot.text):
                results.append(self._result(snapshot, *match.span(), "exact"))
                if len(results) >= options.max_results:
                    break

        if results:
            self.stats.hits += 1
        else:
            self.stats.misses += 1
        return results

    # --- result construction ---------------------------------------------

    def _result(
        self, snapshot: Snapshot, start: int, end: int, strategy: StrategyName
    ) -> MatchResult:
        rng = range_anchor.resolve(snapshot, start, end)
        return MatchResult(rng, strategy, snapshot.text[start:end], start, end)

    def _match(
        self,
        snapshot: Snapshot,
        query: str,
        options: SearchOptions,
        strategy: StrategyName,
        fold_quotes: bool = False,
    ) -> MatchResult | None:
        span = find_span(snapshot.text, query, options, fold_quotes)
        if span is None:
            return None
        return self._result(snapshot, *span, strategy)

    def _root_offset(self, scope: Snapshot, scope_offset: int) -> int:
        """Translate an offset in a sub-snapshot to the root snapshot."""
        node_idx, local = scope.locate(scope_offset)
        node = scope.node(node_idx)
        root = self.index.snapshot()
        for i, ref in enumerate(root.node_refs):
            if ref() is node:
                return root.starts[i] + local
        return scope_offset

    # --- strategies ---------------------------------------------------------

    def _find_exact(
        self, text: str, options: SearchOptions, snapshot: Snapshot
    ) -> MatchResult | None:
        return self._match(snapshot, text, options, "exact")

    def _find_in_section(
        self, text: str, options: SearchOptions, snapshot: Snapshot
    ) -> MatchResult | None:
        assert options.section is not None
        anchors = find_section_elements(
            self.index.document.root, options.section, self.index.exclude
        )
        for anchor in anchors:
            for scope in iter_section_scope(anchor):
                scope_snapshot = self.index.snapshot(scope)
                span = self._scoped_span(scope_snapshot.text, text, options)
                if span is None:
                    continue
                start, end = span
                rng = range_anchor.resolve(scope_snapshot, start, end)
                root_start = self._root_offset(scope_snapshot, start)
                return MatchResult(
                    rng,
                    "section",
                    scope_snapshot.text[start:end],
                    root_start,
                    root_start + (end - start),
                )
        return None

    @staticmethod
    def _scoped_span(
        scope_text: str, text: str, options: SearchOptions
    ) -> tuple[int, int] | None:
        if options.sentence_index is None:
            return find_span(scope_text, text, options)
        spans = sentence_spans(scope_text)
        if options.sentence_index >= len(spans):
            return None
        s_start, s_end = spans[options.sentence_index]
        found = find_span(scope_text[s_start:s_end], text, options)
        if found is None:
            return None
        return s_start + found[0], s_start + found[1]

    def _find_normalized(
        self, text: str, options: SearchOptions, snapshot: Snapshot
    ) -> MatchResult | None:
        candidates = variants(text)
        # The unmodified query was already tried; quote folding only changes it when
        # it contains quotes.
        if not any(ch in QUOTE_CHARS for ch in text):
            candidates = candidates[1:]
        for variant in candidates:
            result = self._match(snapshot, variant, options, "normalized", True)
            if result is not None:
                return result
        return None

    def _find_fuzzy(
        self, text: str, options: SearchOptions, snapshot: Snapshot
    ) -> MatchResult | None:
        if len(text) <= FUZZY_MIN_QUERY_LENGTH:
            return None
        segments = split_into_segments(
            text, options.fuzzy_segment_length, options.fuzzy_segment_overlap
        )
        for segment in segments:
            if len(segment) < FUZZY_MIN_SEGMENT_LENGTH:
                continue
            window = find_span(snapshot.text, segment, options)
            if window is None:
                continue
            expanded = expand_window(snapshot.text, window, segment, text, options)
            if expanded is None:
                logger.debug("Fuzzy expansion failed, keeping window match")
            return self._result(snapshot, *(expanded or window), "fuzzy")
        return None

    def _find_partial(
        self, text: str, options: SearchOptions, snapshot: Snapshot
    ) -> MatchResult | None:
        for length in prefix_lengths(len(text)):
            prefix = text[:length].strip()
            if not prefix:
                continue
            result = self._match(snapshot, prefix, options, "partial")
            if result is not None:
                return result
        return None
