"""Tests for TextNodeIndex snapshots and their cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from textanchor.anchoring.text_index import Snapshot, TextNodeIndex, default_exclude
from textanchor.document import Document, Element

if TYPE_CHECKING:
    from conftest import FakeClock


HTML = (
    "<p>The cat sat</p>"
    "<script>var x = 1;</script>"
    '<div class="textanchor-marker-tooltip">tooltip</div>'
    "<p>on the mat.</p>"
)


class TestBuild:
    """Tests for TextNodeIndex.build()."""

    def test_concatenates_content_leaves(self) -> None:
        """Scripts and decorations are skipped."""
        index = TextNodeIndex(Document.from_html(HTML))
        snapshot = index.build()
        assert snapshot.text == "The cat saton the mat."
        assert snapshot.starts == (0, 11)
        assert snapshot.ends == (11, 22)
        assert len(snapshot) == 2

    def test_whitespace_between_elements_is_text(self) -> None:
        """A whitespace-only leaf separates words but is not a boundary."""
        doc = Document.from_html("<p><b>cat</b> <i>sat</i> on the mat</p>")
        snapshot = TextNodeIndex(doc).build()
        assert snapshot.text == "cat sat on the mat"
        assert len(snapshot) == 3
        assert snapshot.starts == (0, 4, 7)
        assert snapshot.ends == (3, 7, 18)
        first, second = snapshot.node(0), snapshot.node(1)
        assert first is not None and first.data == "cat"
        assert second is not None and second.data == "sat"

    def test_edge_whitespace_is_dropped(self) -> None:
        doc = Document.from_html("<p> <b>cat</b> <i>sat</i> </p>")
        snapshot = TextNodeIndex(doc).build()
        assert snapshot.text == "cat sat"
        assert snapshot.node_end(1) == len(snapshot.text)

    def test_skips_existing_highlight_wrappers(self) -> None:
        html = '<p>The <mark class="textanchor-highlight">cat</mark> sat</p>'
        snapshot = TextNodeIndex(Document.from_html(html)).build()
        assert snapshot.text == "The  sat"

    def test_detached_root_gives_empty_snapshot(self) -> None:
        doc = Document.from_html("<p>text</p>")
        snapshot = TextNodeIndex(doc).build(Element("div", children=["elsewhere"]))
        assert snapshot.is_empty
        assert snapshot.text == ""

    def test_subtree_root(self) -> None:
        doc = Document.from_html("<p>one</p><p>two</p>")
        second = doc.root.children[1]
        assert isinstance(second, Element)
        assert TextNodeIndex(doc).build(second).text == "two"


class TestLocate:
    """Tests for Snapshot.locate() boundary handling."""

    @pytest.fixture
    def snapshot(self) -> Snapshot:
        doc = Document.from_html("<p>abc</p><p>def</p>")
        return TextNodeIndex(doc).build()

    @pytest.mark.parametrize(
        ("offset", "is_end", "expected"),
        [
            (0, False, (0, 0)),
            (2, False, (0, 2)),
            (3, False, (1, 0)),
            (3, True, (0, 3)),
            (6, True, (1, 3)),
            (5, False, (1, 2)),
        ],
    )
    def test_locate(
        self,
        snapshot: Snapshot,
        offset: int,
        is_end: bool,
        expected: tuple[int, int],
    ) -> None:
        """Boundary offsets resolve forward for starts, backward for ends."""
        assert snapshot.locate(offset, is_end=is_end) == expected

    @pytest.mark.parametrize(
        ("offset", "is_end", "expected"),
        [
            (3, False, (1, 0)),
            (4, False, (1, 0)),
            (3, True, (0, 3)),
            (4, True, (0, 3)),
            (7, True, (1, 3)),
        ],
    )
    def test_locate_around_whitespace_gap(
        self, offset: int, is_end: bool, expected: tuple[int, int]
    ) -> None:
        """Offsets in a gap snap to the neighbouring content leaf."""
        doc = Document.from_html("<p><b>cat</b> <i>sat</i></p>")
        snapshot = TextNodeIndex(doc).build()
        assert snapshot.text == "cat sat"
        assert snapshot.locate(offset, is_end=is_end) == expected

    def test_empty_snapshot_raises(self) -> None:
        empty = TextNodeIndex(Document(Element("body"))).build()
        with pytest.raises(IndexError):
            empty.locate(0)


class TestSnapshotCache:
    """Tests for snapshot caching, TTL and push-based invalidation."""

    def test_second_snapshot_reuses_cache(self, clock: FakeClock) -> None:
        index = TextNodeIndex(Document.from_html("<p>abc</p>"), clock=clock)
        first = index.snapshot()
        second = index.snapshot()
        assert first is second
        assert index.build_count == 1

    def test_ttl_expiry_rebuilds(self, clock: FakeClock) -> None:
        doc = Document.from_html("<p>abc</p>")
        index = TextNodeIndex(doc, ttl_ms=5000, clock=clock)
        index.snapshot()
        clock.advance(4.9)
        index.snapshot()
        assert index.build_count == 1
        clock.advance(0.2)
        index.snapshot()
        assert index.build_count == 2

    def test_invalidate_forces_rebuild(self, clock: FakeClock) -> None:
        """A structural edit is picked up after invalidate()."""
        doc = Document.from_html("<p>abc</p>")
        index = TextNodeIndex(doc, clock=clock)
        assert index.snapshot().text == "abc"

        doc.root.append(Element("p", children=["def"]))
        assert index.snapshot().text == "abc"  # still cached

        index.invalidate(doc.root)
        assert index.snapshot().text == "abcdef"
        assert index.generation == 1

    def test_dead_node_forces_rebuild(self, clock: FakeClock) -> None:
        doc = Document.from_html("<p>abc</p><p>def</p>")
        index = TextNodeIndex(doc, clock=clock)
        index.snapshot()
        second = doc.root.children[1]
        assert isinstance(second, Element)
        second.children.clear()
        assert index.snapshot().text == "abc"
        assert index.build_count == 2


class TestDefaultExclude:
    """Tests for the default exclusion predicate."""

    @pytest.mark.parametrize(
        "element",
        [
            Element("script"),
            Element("style"),
            Element("div", {"class": "textanchor-marker"}),
            Element("span", {"class": "x textanchor-highlight"}),
            Element("div", {"class": "textanchor-property-window"}),
        ],
    )
    def test_excluded(self, element: Element) -> None:
        assert default_exclude(element)

    def test_content_not_excluded(self) -> None:
        assert not default_exclude(Element("p", {"class": "section-body"}))
