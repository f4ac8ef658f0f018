"""Tests for resolving snapshot offsets into ranges."""

from __future__ import annotations

import logging

import pytest

from textanchor.anchoring.range_anchor import resolve
from textanchor.anchoring.text_index import TextNodeIndex
from textanchor.document import Document, Element
from textanchor.errors import InvalidRangeError


def _index(html: str) -> tuple[Document, TextNodeIndex]:
    doc = Document.from_html(html)
    return doc, TextNodeIndex(doc)


class TestResolve:
    """Tests for resolve()."""

    def test_within_single_node(self) -> None:
        _, index = _index("<p>The cat sat on the mat.</p>")
        rng = resolve(index.snapshot(), 4, 11)
        assert rng.to_string() == "cat sat"
        assert (rng.start_offset, rng.end_offset) == (4, 11)

    def test_across_nodes(self) -> None:
        _, index = _index("<p>The <b>cat</b> sat</p>")
        rng = resolve(index.snapshot(), 2, 9)
        assert rng.to_string() == "e cat s"
        assert rng.start_node is not rng.end_node

    def test_end_on_node_boundary_stays_in_previous_node(self) -> None:
        """An end offset at a boundary does not spill into the next node."""
        _, index = _index("<p>The <b>cat</b> sat</p>")
        rng = resolve(index.snapshot(), 4, 7)
        assert rng.start_node is rng.end_node
        assert rng.to_string() == "cat"

    def test_out_of_bounds_offsets_are_clamped(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        _, index = _index("<p>short</p>")
        with caplog.at_level(logging.WARNING, logger="textanchor.anchoring"):
            rng = resolve(index.snapshot(), -3, 99)
        assert rng.to_string() == "short"
        assert "Clamped range" in caplog.text

    def test_shrunk_node_is_clamped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Text edited after the snapshot is clamped, not rejected."""
        doc, index = _index("<p>abcdef</p>")
        snapshot = index.snapshot()
        p = doc.root.children[0]
        assert isinstance(p, Element)
        p.children[0].data = "abc"  # type: ignore[union-attr]
        with caplog.at_level(logging.WARNING, logger="textanchor.anchoring"):
            rng = resolve(snapshot, 1, 5)
        assert rng.to_string() == "bc"
        assert "Clamped local offsets" in caplog.text

    def test_empty_snapshot_raises(self) -> None:
        doc = Document(Element("body"))
        with pytest.raises(InvalidRangeError, match="empty snapshot"):
            resolve(TextNodeIndex(doc).snapshot(), 0, 1)
