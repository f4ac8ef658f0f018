"""Tests for query normalisation variants."""

from __future__ import annotations

import pytest

from textanchor.anchoring.normalizer import (
    collapse_whitespace,
    flatten_linebreaks,
    join_hyphenated,
    straighten_quotes,
    strip_punctuation,
    variants,
)


class TestTransforms:
    """Tests for the individual text transforms."""

    def test_straighten_quotes(self) -> None:
        assert straighten_quotes("He said “hello” ‘there’") == (
            "He said \"hello\" 'there'"
        )

    def test_collapse_whitespace(self) -> None:
        assert collapse_whitespace("  a \t b\n\nc  ") == "a b c"

    def test_strip_punctuation(self) -> None:
        assert strip_punctuation("Hello, world! (again)") == "Hello world again"

    def test_join_hyphenated(self) -> None:
        assert join_hyphenated("inter-\nnational") == "international"

    def test_hyphen_without_linebreak_untouched(self) -> None:
        assert join_hyphenated("well-known") == "well-known"

    def test_flatten_linebreaks(self) -> None:
        assert flatten_linebreaks("one\ntwo\n three") == "one two three"


class TestVariants:
    """Tests for variants()."""

    def test_original_first(self) -> None:
        assert variants("  a  b ")[0] == "  a  b "

    def test_duplicates_removed(self) -> None:
        """Plain text yields a single variant."""
        assert variants("plain") == ["plain"]

    def test_order(self) -> None:
        result = variants("“Quoted”,  text")
        assert result == [
            "“Quoted”,  text",
            '"Quoted",  text',
            "“Quoted”, text",
            "Quoted text",
        ]

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("inter-\nnational", "international"),
            ("line\nbreak", "line break"),
        ],
    )
    def test_contains(self, text: str, expected: str) -> None:
        assert expected in variants(text)
