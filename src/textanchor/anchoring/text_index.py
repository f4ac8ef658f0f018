"""Ordered index of text-bearing leaves under a root element.

A snapshot concatenates the text of every content leaf and records each
leaf's start and end offset, so a character offset in the concatenated text
maps back to a (node, local offset) pair by binary search. Whitespace-only
leaves lying between two content leaves contribute their text but are never
used as range boundaries.

Snapshots are cached per root for a short time-to-live. The document owner
calls ``invalidate()`` after structural edits; there is no implicit mutation
observation. A snapshot is either fully valid or rebuilt.
"""

from __future__ import annotations

import logging
import time
import weakref
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from textanchor.marker_constants import SKIP_SUBTREE_CLASSES

if TYPE_CHECKING:
    from collections.abc import Callable

    from textanchor.document.nodes import Document, Element, TextNode

logger = logging.getLogger(__name__)

# Tags whose text is never document content
EXCLUDED_TAGS = frozenset(("script", "style", "noscript", "template"))


def default_exclude(element: Element) -> bool:
    """Skip non-content tags, highlight wrappers, and UI decoration subtrees."""
    if element.tag in EXCLUDED_TAGS:
        return True
    return any(cls in SKIP_SUBTREE_CLASSES for cls in element.classes)


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time projection of a subtree's content leaves."""

    node_refs: tuple[weakref.ref[TextNode], ...]
    text: str
    starts: tuple[int, ...]
    ends: tuple[int, ...]
    generation: int
    created_at: float
    root_ref: weakref.ref[Element] | None = field(default=None, repr=False)

    def __len__(self) -> int:
        return len(self.node_refs)

    @property
    def is_empty(self) -> bool:
        return not self.node_refs

    def node(self, i: int) -> TextNode | None:
        return self.node_refs[i]()

    def nodes_alive(self) -> bool:
        return all(ref() is not None for ref in self.node_refs)

    def node_end(self, i: int) -> int:
        return self.ends[i]

    def locate(self, offset: int, *, is_end: bool = False) -> tuple[int, int]:
        """Map a character offset to ``(node index, local offset)``.

        A start offset sitting on a node boundary, or in the whitespace gap
        after a node, resolves to the beginning of the following node; an end
        offset resolves to the end of the preceding node. Offsets inside a
        node are not clamped.
        """
        if self.is_empty:
            msg = "Cannot locate an offset in an empty snapshot"
            raise IndexError(msg)
        if is_end:
            i = bisect_left(self.starts, offset) - 1
        else:
            i = bisect_right(self.starts, offset) - 1
        i = min(max(i, 0), len(self.starts) - 1)
        if offset > self.ends[i] and is_end:
            return i, self.ends[i] - self.starts[i]
        if offset >= self.ends[i] and not is_end and i + 1 < len(self.starts):
            return i + 1, 0
        return i, offset - self.starts[i]


class TextNodeIndex:
    """Builds and caches snapshots of content leaves.

    Args:
        document: The host document whose subtrees are indexed.
        exclude: Predicate marking element subtrees to skip.
        ttl_ms: Snapshot lifetime in milliseconds.
        clock: Monotonic seconds source (injectable for tests).
    """

    def __init__(
        self,
        document: Document,
        exclude: Callable[[Element], bool] = default_exclude,
        ttl_ms: int = 5000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.document = document
        self.exclude = exclude
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._generation = 0
        self._snapshots: weakref.WeakKeyDictionary[Element, Snapshot] = (
            weakref.WeakKeyDictionary()
        )
        # Number of tree walks performed; lets callers observe cache reuse.
        self.build_count = 0

    @property
    def generation(self) -> int:
        return self._generation

    def build(self, root: Element | None = None) -> Snapshot:
        """Walk *root* and return a fresh (uncached) snapshot.

        A root that is no longer attached to the document yields an empty
        snapshot rather than an error.
        """
        root = self.document.root if root is None else root
        now = self._clock()
        if not self.document.is_attached(root):
            logger.debug("Snapshot requested for detached root %r", root)
            return Snapshot((), "", (), (), self._generation, now)

        self.build_count += 1
        refs: list[weakref.ref[TextNode]] = []
        starts: list[int] = []
        ends: list[int] = []
        parts: list[str] = []
        gap: list[str] = []
        offset = 0
        for node in self.document.walk_leaf_text_nodes(root, self.exclude):
            if not node.data.strip():
                gap.append(node.data)
                continue
            # Whitespace before the first or after the last leaf is dropped
            if refs:
                for ws in gap:
                    parts.append(ws)
                    offset += len(ws)
            gap.clear()
            refs.append(weakref.ref(node))
            starts.append(offset)
            parts.append(node.data)
            offset += len(node.data)
            ends.append(offset)

        logger.debug("Indexed %d text nodes (%d chars)", len(refs), offset)
        return Snapshot(
            tuple(refs),
            "".join(parts),
            tuple(starts),
            tuple(ends),
            self._generation,
            now,
            weakref.ref(root),
        )

    def _is_valid(self, snapshot: Snapshot) -> bool:
        if snapshot.generation != self._generation:
            return False
        age_ms = (self._clock() - snapshot.created_at) * 1000
        if age_ms >= self.ttl_ms:
            return False
        return snapshot.nodes_alive()

    def snapshot(self, root: Element | None = None) -> Snapshot:
        """Return the cached snapshot for *root*, rebuilding it if stale."""
        root = self.document.root if root is None else root
        cached = self._snapshots.get(root)
        if cached is not None and self._is_valid(cached):
            return cached

        snapshot = self.build(root)
        if not snapshot.is_empty:
            self._snapshots[root] = snapshot
        return snapshot

    def invalidate(self, root: Element | None = None) -> None:
        """Drop every cached snapshot.

        A structural edit under *root* also changes the text of every
        snapshot taken over an ancestor of *root*, so invalidation is never
        partial.
        """
        self._generation += 1
        self._snapshots.clear()
        logger.debug(
            "Snapshots invalidated (generation %d, root=%r)", self._generation, root
        )
