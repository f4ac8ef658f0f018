"""Authoritative in-memory store of highlights.

Highlights are indexed by id, by type (their source: ``manual`` or ``rag``)
and by wrapper element. The element index is a ``WeakKeyDictionary`` so a
wrapper dropped from the document is not kept alive by the registry.
"""

from __future__ import annotations

import logging
import weakref
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from textanchor.document.nodes import Element
    from textanchor.highlighting.models import Highlight

logger = logging.getLogger(__name__)


class HighlightRegistry:
    """id -> Highlight map with secondary indexes."""

    def __init__(self) -> None:
        self._highlights: dict[str, Highlight] = {}
        # type -> ids, insertion ordered
        self._by_type: dict[str, dict[str, None]] = {}
        self._by_element: weakref.WeakKeyDictionary[Element, str] = (
            weakref.WeakKeyDictionary()
        )
        self._created = 0
        self._deleted = 0

    def __len__(self) -> int:
        return len(self._highlights)

    def __contains__(self, highlight_id: object) -> bool:
        return highlight_id in self._highlights

    def register(self, highlight: Highlight) -> Highlight:
        """Add *highlight*, replacing any existing entry with the same id."""
        if highlight.id in self._highlights:
            logger.debug("Replacing registered highlight %s", highlight.id)
            self._drop_indexes(self._highlights[highlight.id])
        else:
            self._created += 1

        self._highlights[highlight.id] = highlight
        self._by_type.setdefault(highlight.source, {})[highlight.id] = None
        element = highlight.element
        if element is not None:
            self._by_element[element] = highlight.id
        return highlight

    def _drop_indexes(self, highlight: Highlight) -> None:
        ids = self._by_type.get(highlight.source)
        if ids is not None:
            ids.pop(highlight.id, None)
            if not ids:
                del self._by_type[highlight.source]
        element = highlight.element
        if element is not None and self._by_element.get(element) == highlight.id:
            del self._by_element[element]

    def unregister(self, highlight_id: str) -> Highlight | None:
        """Remove *highlight_id* from every index; return what was removed."""
        highlight = self._highlights.pop(highlight_id, None)
        if highlight is None:
            return None
        self._drop_indexes(highlight)
        self._deleted += 1
        return highlight

    def update_element(self, highlight: Highlight, element: Element) -> None:
        """Point *highlight* at a replacement wrapper element."""
        old = highlight.element
        if old is not None and self._by_element.get(old) == highlight.id:
            del self._by_element[old]
        highlight.element = element
        if highlight.id in self._highlights:
            self._by_element[element] = highlight.id

    def get(self, highlight_id: str) -> Highlight | None:
        return self._highlights.get(highlight_id)

    def has(self, highlight_id: str) -> bool:
        return highlight_id in self._highlights

    def get_by_type(self, highlight_type: str) -> list[Highlight]:
        ids = self._by_type.get(highlight_type, {})
        return [self._highlights[i] for i in ids]

    def get_by_element(self, element: Element) -> Highlight | None:
        highlight_id = self._by_element.get(element)
        return self._highlights.get(highlight_id) if highlight_id else None

    def get_all(self) -> list[Highlight]:
        return list(self._highlights.values())

    def find(self, predicate: Callable[[Highlight], bool]) -> list[Highlight]:
        return [h for h in self._highlights.values() if predicate(h)]

    def clear_type(self, highlight_type: str) -> int:
        ids = list(self._by_type.get(highlight_type, {}))
        for highlight_id in ids:
            self.unregister(highlight_id)
        return len(ids)

    def clear(self) -> int:
        """Forget every highlight; return how many there were."""
        count = len(self._highlights)
        self._deleted += count
        self._highlights.clear()
        self._by_type.clear()
        self._by_element.clear()
        return count

    def stats(self) -> dict[str, object]:
        return {
            "created": self._created,
            "deleted": self._deleted,
            "active": len(self._highlights),
            "by_type": {t: len(ids) for t, ids in self._by_type.items()},
        }
