"""Tests for section discovery and sentence splitting."""

from __future__ import annotations

import pytest

from textanchor.anchoring.sections import (
    find_section_elements,
    iter_section_scope,
    sentence_spans,
)
from textanchor.document import Document

HTML = (
    "<h2>Introduction</h2>"
    "<p>Intro text.</p>"
    "<h2>Methods</h2>"
    "<p>First method paragraph.</p>"
    "<p>Second method paragraph.</p>"
    "<h2>Results</h2>"
    "<p>Result text.</p>"
    '<div id="related-work"><p>Related.</p></div>'
    '<div aria-label="Appendix A"><p>Extra.</p></div>'
)


class TestFindSectionElements:
    """Tests for find_section_elements() heuristics."""

    def test_heading_match_is_case_insensitive(self) -> None:
        root = Document.from_html(HTML).root
        found = find_section_elements(root, "methods")
        assert [el.text_content for el in found] == ["Methods"]

    def test_id_slug(self) -> None:
        root = Document.from_html(HTML).root
        found = find_section_elements(root, "Related Work")
        assert [el.get("id") for el in found] == ["related-work"]

    def test_aria_label(self) -> None:
        root = Document.from_html(HTML).root
        found = find_section_elements(root, "appendix")
        assert [el.get("aria-label") for el in found] == ["Appendix A"]

    def test_section_class_with_text(self) -> None:
        root = Document.from_html(
            '<div class="paper-section">Discussion of things</div>'
        ).root
        found = find_section_elements(root, "discussion")
        assert [el.get("class") for el in found] == ["paper-section"]

    def test_blank_name_finds_nothing(self) -> None:
        assert find_section_elements(Document.from_html(HTML).root, "  ") == []


class TestIterSectionScope:
    """Tests for iter_section_scope()."""

    def test_stops_at_next_heading(self) -> None:
        """Content under a heading but not nested in it is in scope."""
        root = Document.from_html(HTML).root
        (anchor,) = find_section_elements(root, "Methods")
        scope = [el.text_content for el in iter_section_scope(anchor)]
        assert scope == [
            "Methods",
            "First method paragraph.",
            "Second method paragraph.",
        ]


class TestSentenceSpans:
    """Tests for sentence_spans()."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("One. Two! Three?", [(0, 4), (4, 9), (9, 16)]),
            ("no terminator", [(0, 13)]),
            ("Ends. trailing", [(0, 5)]),
        ],
    )
    def test_spans(self, text: str, expected: list[tuple[int, int]]) -> None:
        assert sentence_spans(text) == expected
