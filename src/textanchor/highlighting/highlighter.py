"""Per-document highlighting engine.

``TextHighlighter`` ties the text index, search chain, applier and registry
together behind the public API hosts call: find text, highlight a range,
resize, update and remove highlights. Construct one per document; it keeps
no module-level state.

Range and anchor failures during highlight operations are logged and
reported as ``None``/``False``; the document is left as it was. Query
validation errors propagate to the caller.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import string
import time
from typing import TYPE_CHECKING, Any, Literal

from textanchor.anchoring.cache import SearchCache
from textanchor.anchoring.search import (
    MatchResult,
    SearchOptions,
    SearchStats,
    SearchStrategyChain,
)
from textanchor.anchoring.text_index import TextNodeIndex
from textanchor.config import CacheConfig, HighlightConfig, SearchConfig, get_settings
from textanchor.errors import InvalidRangeError, StaleAnchorError
from textanchor.highlighting.applier import HighlightApplier
from textanchor.highlighting.registry import HighlightRegistry
from textanchor.marker_constants import WRAPPER_CLASS

if TYPE_CHECKING:
    from collections.abc import Callable

    from textanchor.config import Settings
    from textanchor.document.nodes import Document, Element
    from textanchor.document.ranges import Range
    from textanchor.highlighting.models import (
        Highlight,
        HighlightMetadata,
        HighlightSource,
        PropertyRef,
    )

logger = logging.getLogger(__name__)

ConfidenceLevel = Literal["High", "Medium", "Low", "Unknown"]

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9


class TextHighlighter:
    """Find text in one document and manage highlights over it.

    Args:
        document: The document to search and annotate.
        settings: Engine settings; ``get_settings()`` when omitted.
        clock: Monotonic seconds source for snapshot expiry.
    """

    def __init__(
        self,
        document: Document,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.document = document
        self.settings = settings or get_settings()
        self.index = TextNodeIndex(
            document, ttl_ms=self.settings.cache.snapshot_ttl_ms, clock=clock
        )
        self.cache: SearchCache[MatchResult] = SearchCache(
            self.settings.cache.search_cache_size
        )
        self.search = SearchStrategyChain(self.index, self.settings.search, self.cache)
        self.applier = HighlightApplier(document)
        self.registry = HighlightRegistry()

    @property
    def highlight_config(self) -> HighlightConfig:
        return self.settings.highlight

    # --- search -----------------------------------------------------------

    def _options(
        self, options: SearchOptions | None, overrides: dict[str, Any]
    ) -> SearchOptions:
        if options is None:
            return self.search.default_options(**overrides)
        if overrides:
            msg = "Pass either a SearchOptions instance or keyword overrides"
            raise TypeError(msg)
        return options

    def find_text(
        self, text: str, options: SearchOptions | None = None, **overrides: Any
    ) -> MatchResult | None:
        """Locate *text*; None when no strategy matches.

        Keyword overrides (``section="Methods"``, ``exact_match=True``, ...)
        are applied on top of the configured defaults.

        ``section`` and ``sentence_index`` do not restrict the exact pass,
        which searches the whole document first. Any text inside a section
        is also in the document, so a named section never changes which
        match is returned.

        Raises:
            QueryTooShortError / QueryTooLongError: Query length out of bounds.
        """
        return self.search.find(text, self._options(options, overrides))

    def find_all_text(
        self, text: str, options: SearchOptions | None = None, **overrides: Any
    ) -> list[MatchResult]:
        return self.search.find_all(text, self._options(options, overrides))

    # --- highlight lifecycle ----------------------------------------------

    def generate_highlight_id(self, prefix: str = "text") -> str:
        """``{prefix}_{epoch ms}_{9 base36 chars}``, unique in this engine."""
        while True:
            suffix = "".join(
                secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH)
            )
            highlight_id = f"{prefix}_{int(time.time() * 1000)}_{suffix}"
            if not self.registry.has(highlight_id):
                return highlight_id

    def pick_color(self, prop: PropertyRef | None, color: str | None = None) -> str:
        """Explicit colour, else a stable palette colour for the property."""
        if color:
            return color
        key = (prop.id or prop.label) if prop is not None else ""
        if not key:
            return self.highlight_config.default_color
        palette = self.highlight_config.palette
        digest = hashlib.sha256(key.encode("utf-8")).digest()
        return palette[int.from_bytes(digest[:4], "big") % len(palette)]

    def highlight_range(
        self,
        rng: Range,
        metadata: HighlightMetadata,
        *,
        highlight_id: str | None = None,
        expected_text: str | None = None,
    ) -> Highlight | None:
        """Wrap *rng* and register the highlight.

        The range text must still match *expected_text* (default:
        ``metadata.text``; skipped when both are empty). Returns None if the
        range is detached, empty or stale.
        """
        prefix = "rag" if metadata.source == "rag" else "text"
        highlight_id = highlight_id or self.generate_highlight_id(prefix)
        color = self.pick_color(metadata.property, metadata.color)
        parent = rng.start_node.parent if rng.start_node is not None else None

        try:
            highlight = self.applier.apply(
                rng, highlight_id, metadata, color, expected_text
            )
        except StaleAnchorError as exc:
            logger.warning("Stale anchor, %s not applied: %s", highlight_id, exc)
            return None
        except InvalidRangeError as exc:
            logger.warning("Invalid range, %s not applied: %s", highlight_id, exc)
            return None

        self.registry.register(highlight)
        self.invalidate(parent)
        logger.info(
            "Created %s highlight %s (%d chars, property=%s)",
            highlight.source,
            highlight.id,
            len(highlight.text),
            highlight.property.id,
        )
        return highlight

    def highlight_match(
        self, match: MatchResult, metadata: HighlightMetadata
    ) -> Highlight | None:
        """Highlight a search result, re-checking it against its matched text."""
        return self.highlight_range(
            match.range, metadata, expected_text=match.matched_text
        )

    def highlight_text(
        self,
        text: str,
        metadata: HighlightMetadata,
        options: SearchOptions | None = None,
        **overrides: Any,
    ) -> Highlight | None:
        """Find *text* and highlight the match; None if not found or stale."""
        match = self.find_text(text, options, **overrides)
        if match is None:
            logger.debug("Nothing to highlight for %r", text[:50])
            return None
        return self.highlight_match(match, metadata)

    def _nested_highlights(self, wrapper: Element | None) -> list[Highlight]:
        if wrapper is None:
            return []
        nested = []
        for element in wrapper.iter_elements():
            if element.has_class(WRAPPER_CLASS):
                inner = self.registry.get_by_element(element)
                if inner is not None:
                    nested.append(inner)
        return nested

    def _forget_nested(self, nested: list[Highlight]) -> None:
        for inner in nested:
            self.registry.unregister(inner.id)
            inner.element = None
            logger.info("Removed nested highlight %s", inner.id)

    def remove_highlight(self, highlight_id: str) -> bool:
        """Unwrap and forget a highlight.

        Highlights nested inside it are flattened and forgotten as well.
        Returns False if the id is unknown or its wrapper had already left
        the document (the registry entry is dropped either way).
        """
        highlight = self.registry.get(highlight_id)
        if highlight is None:
            logger.debug("remove_highlight: unknown id %s", highlight_id)
            return False

        wrapper = highlight.element
        parent = wrapper.parent if wrapper is not None else None
        nested = self._nested_highlights(wrapper)
        self.registry.unregister(highlight_id)
        try:
            self.applier.remove(highlight)
        except InvalidRangeError as exc:
            logger.warning(
                "Highlight %s dropped from registry only: %s", highlight_id, exc
            )
            return False

        self._forget_nested(nested)
        self.invalidate(parent)
        logger.info("Removed highlight %s", highlight_id)
        return True

    def resize_highlight(
        self, highlight_id: str, new_start: int, new_end: int
    ) -> Highlight | None:
        """Narrow a highlight to ``text[new_start:new_end]``, keeping its id.

        Highlights nested inside it are flattened into plain text and
        forgotten, as on removal.
        """
        highlight = self.registry.get(highlight_id)
        if highlight is None:
            logger.debug("resize_highlight: unknown id %s", highlight_id)
            return None
        nested = self._nested_highlights(highlight.element)
        try:
            replacement = self.applier.resize(highlight, new_start, new_end)
        except InvalidRangeError as exc:
            logger.warning("Highlight %s not resized: %s", highlight_id, exc)
            return None

        self.registry.update_element(highlight, replacement)
        self._forget_nested(nested)
        self.invalidate(replacement.parent)
        logger.info(
            "Resized highlight %s to [%d, %d)", highlight_id, new_start, new_end
        )
        return highlight

    def update_highlight(
        self,
        highlight_id: str,
        *,
        prop: PropertyRef | None = None,
        color: str | None = None,
    ) -> Highlight | None:
        """Change a highlight's property and/or colour in place.

        Returns None if the id is unknown or its wrapper has left the
        document; nothing is changed in that case.
        """
        highlight = self.registry.get(highlight_id)
        if highlight is None:
            return None
        try:
            self.applier.update(highlight, prop, color)
        except InvalidRangeError as exc:
            logger.warning("Highlight %s not updated: %s", highlight_id, exc)
            return None
        logger.info("Updated highlight %s", highlight_id)
        return highlight

    def clear_all_highlights(self) -> int:
        """Remove every highlight; return how many were registered."""
        count = len(self.registry)
        for highlight in self.registry.get_all():
            if self.registry.has(highlight.id):
                self.remove_highlight(highlight.id)
        self.registry.clear()
        logger.info("Cleared %d highlights", count)
        return count

    # --- lookups ----------------------------------------------------------

    def get_highlight(self, highlight_id: str) -> Highlight | None:
        return self.registry.get(highlight_id)

    def get_all_highlights(self) -> list[Highlight]:
        return self.registry.get_all()

    def get_highlight_count(self) -> int:
        return len(self.registry)

    def get_highlights_by_source(self, source: HighlightSource) -> list[Highlight]:
        return self.registry.get_by_type(source)

    # --- selection helpers -------------------------------------------------

    def is_valid_selection(self, text: str | None) -> bool:
        """True when the trimmed selection length is strictly within limits."""
        if not text:
            return False
        length = len(text.strip())
        config = self.highlight_config
        return config.min_selection_length < length < config.max_selection_length

    def confidence_level(self, confidence: float | None) -> ConfidenceLevel:
        if confidence is None:
            return "Unknown"
        if confidence >= self.highlight_config.confidence_high:
            return "High"
        if confidence >= self.highlight_config.confidence_medium:
            return "Medium"
        return "Low"

    # --- cache, config, stats -------------------------------------------

    def invalidate(self, root: Element | None = None) -> None:
        """Signal that the document under *root* changed structurally.

        Drops every snapshot and every memoised search result.
        """
        self.index.invalidate(root)
        self.cache.clear()

    def clear_cache(self) -> None:
        self.invalidate()
        logger.debug("Search cache and snapshots cleared")

    def update_config(
        self,
        *,
        search: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
        highlight: dict[str, Any] | None = None,
    ) -> None:
        """Merge and re-validate configuration, then clear caches.

        Raises:
            pydantic.ValidationError: The merged configuration is invalid.
        """
        updates: dict[str, Any] = {}
        if search:
            merged = {**self.settings.search.model_dump(), **search}
            updates["search"] = SearchConfig.model_validate(merged)
        if cache:
            merged = {**self.settings.cache.model_dump(), **cache}
            updates["cache"] = CacheConfig.model_validate(merged)
        if highlight:
            merged = {**self.settings.highlight.model_dump(), **highlight}
            updates["highlight"] = HighlightConfig.model_validate(merged)
        if not updates:
            return

        self.settings = self.settings.model_copy(update=updates)
        self.search.config = self.settings.search
        self.index.ttl_ms = self.settings.cache.snapshot_ttl_ms
        if self.cache.max_size != self.settings.cache.search_cache_size:
            self.cache = SearchCache(self.settings.cache.search_cache_size)
            self.search.cache = self.cache
        self.clear_cache()
        logger.info("Configuration updated: %s", ", ".join(sorted(updates)))

    def get_stats(self) -> dict[str, object]:
        return {
            **self.search.stats.as_dict(),
            "cache_size": len(self.cache),
            "snapshot_builds": self.index.build_count,
            "highlights": self.registry.stats(),
        }

    def reset_stats(self) -> None:
        self.search.stats = SearchStats()
