"""Locating named document sections for section-scoped search.

A section name ("Methods", "Related work") is matched against headings,
section-classed containers, element ids and ARIA labels. Content that
belongs to a heading is often not nested under it, so a section scope is the
anchor element plus its following element siblings up to the next heading.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from textanchor.document.nodes import Element

HEADING_TAGS = frozenset(("h1", "h2", "h3", "h4", "h5", "h6"))

# Elements that start a new section when scanning forward from an anchor
SECTION_BREAK_TAGS = HEADING_TAGS | {"section", "article"}

# Naive sentence split: runs of non-terminators followed by terminators
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")
_WHITESPACE_RUN = re.compile(r"\s+")


def _heading_matches(el: Element, needle: str) -> bool:
    return el.tag in HEADING_TAGS and needle in el.text_content.lower()


def _section_class_matches(el: Element, needle: str) -> bool:
    if "section" not in el.get("class", "").lower():
        return False
    return needle in el.text_content.lower()


def find_section_elements(
    root: Element,
    section_name: str,
    exclude: Callable[[Element], bool] | None = None,
) -> list[Element]:
    """Elements under *root* that plausibly anchor *section_name*.

    Heuristics are tried in order (heading text, section-ish class plus
    text, id slug, aria-label) and their results concatenated without
    duplicates, so stronger signals come first.
    """
    needle = section_name.strip().lower()
    if not needle:
        return []
    slug = _WHITESPACE_RUN.sub("-", needle)

    elements = [
        el for el in root.iter_elements() if exclude is None or not exclude(el)
    ]
    heuristics: list[Callable[[Element], bool]] = [
        lambda el: _heading_matches(el, needle),
        lambda el: _section_class_matches(el, needle),
        lambda el: slug in el.get("id", "").lower(),
        lambda el: needle in el.get("aria-label", "").lower(),
    ]

    found: dict[Element, None] = {}
    for matches in heuristics:
        for el in elements:
            if matches(el):
                found.setdefault(el, None)
    return list(found)


def iter_section_scope(anchor: Element) -> Iterator[Element]:
    """The anchor, then following element siblings until the next break."""
    yield anchor
    sibling = anchor.next_element_sibling
    while sibling is not None and sibling.tag not in SECTION_BREAK_TAGS:
        yield sibling
        sibling = sibling.next_element_sibling


def sentence_spans(text: str) -> list[tuple[int, int]]:
    """``(start, end)`` offsets of each sentence in *text*.

    Text without any sentence terminator counts as a single sentence.
    """
    spans = [(m.start(), m.end()) for m in _SENTENCE.finditer(text)]
    return spans or [(0, len(text))]
