"""Wrapping ranges in highlight elements and reversing it exactly.

``apply`` moves a range's content into a wrapper element. ``remove`` replaces
the wrapper with a single text node holding its content (decoration subtrees
excluded) and merges that node with its neighbours, so the parent's text
reads exactly as it did before the highlight existed. Markup inside the
wrapper is not restored. ``resize`` re-slices a wrapper's text into
before/selected/after nodes, keeping the highlight id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from textanchor.anchoring.normalizer import collapse_whitespace, straighten_quotes
from textanchor.document.nodes import Element, TextNode
from textanchor.document.ranges import SurroundContentsError
from textanchor.errors import DecorationLeakError, InvalidRangeError, StaleAnchorError
from textanchor.highlighting.models import Highlight
from textanchor.marker_constants import (
    ATTR_COLOR,
    ATTR_CONFIDENCE,
    ATTR_HIGHLIGHT_ID,
    ATTR_PROPERTY,
    ATTR_PROPERTY_LABEL,
    ATTR_SOURCE,
    DECORATION_CLASSES,
    RAG_WRAPPER_CLASS,
    UI_CHROME_CLASSES,
    WRAPPER_CLASS,
    WRAPPER_TAG,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from textanchor.document.nodes import Document, Node
    from textanchor.document.ranges import Range
    from textanchor.highlighting.models import HighlightMetadata, PropertyRef

logger = logging.getLogger(__name__)

_NON_CONTENT_CLASSES = DECORATION_CLASSES | UI_CHROME_CLASSES


def is_decoration(node: Node) -> bool:
    """True for marker icons, menus, tooltips and other UI chrome."""
    if not isinstance(node, Element):
        return False
    return any(cls in _NON_CONTENT_CLASSES for cls in node.classes)


def _content_text_nodes(element: Element) -> Iterator[TextNode]:
    stack = list(reversed(element.children))
    while stack:
        node = stack.pop()
        if isinstance(node, TextNode):
            yield node
        elif isinstance(node, Element) and not is_decoration(node):
            stack.extend(reversed(node.children))


def pure_text(wrapper: Element) -> str:
    """Text of *wrapper* with decoration subtrees skipped."""
    return "".join(node.data for node in _content_text_nodes(wrapper))


def _comparable(text: str) -> str:
    return collapse_whitespace(straighten_quotes(text))


def _style(color: str) -> str:
    return f"background-color: {color}"


class HighlightApplier:
    """Performs the document edits behind highlight create/remove/resize.

    Every operation validates its inputs before the first mutation, so a
    failure leaves the document untouched.
    """

    def __init__(self, document: Document) -> None:
        self.document = document

    # --- wrapper construction -------------------------------------------

    def build_wrapper(
        self,
        highlight_id: str,
        prop: PropertyRef,
        color: str,
        source: str = "manual",
        confidence: float | None = None,
    ) -> Element:
        classes = [WRAPPER_CLASS]
        if source == "rag":
            classes.append(RAG_WRAPPER_CLASS)
        attrs = {
            "class": " ".join(classes),
            ATTR_HIGHLIGHT_ID: highlight_id,
            ATTR_PROPERTY: prop.id,
            ATTR_PROPERTY_LABEL: prop.label,
            ATTR_COLOR: color,
            ATTR_SOURCE: source,
            "style": _style(color),
        }
        if confidence is not None:
            attrs[ATTR_CONFIDENCE] = f"{confidence:g}"
        return Element(WRAPPER_TAG, attrs)

    # --- apply ----------------------------------------------------------

    def check_range(self, rng: Range, expected_text: str | None = None) -> str:
        """Return the range's current text after validating it.

        Raises:
            InvalidRangeError: The range is detached, out of bounds or empty.
            StaleAnchorError: The text no longer matches *expected_text*
                (compared up to whitespace runs and quote style).
        """
        if not rng.is_attached(self.document.root):
            msg = "Range is no longer attached to the document"
            raise InvalidRangeError(msg)
        actual = rng.to_string()
        if not actual.strip():
            msg = "Cannot highlight an empty range"
            raise InvalidRangeError(msg)
        if expected_text and _comparable(actual) != _comparable(expected_text):
            raise StaleAnchorError(expected_text, actual)
        return actual

    def apply(
        self,
        rng: Range,
        highlight_id: str,
        metadata: HighlightMetadata,
        color: str,
        expected_text: str | None = None,
    ) -> Highlight:
        """Wrap *rng* and return the (unregistered) Highlight describing it.

        *expected_text* defaults to ``metadata.text``.
        """
        expected = metadata.text if expected_text is None else expected_text
        actual = self.check_range(rng, expected)

        wrapper = self.build_wrapper(
            highlight_id,
            metadata.property,
            color,
            metadata.source,
            metadata.confidence,
        )
        try:
            rng.surround_contents(wrapper)
        except SurroundContentsError:
            # Range crosses element boundaries
            logger.debug("surround_contents rejected, extracting contents instead")
            extracted = rng.extract_contents()
            for node in extracted.nodes:
                wrapper.append(node)
            extracted.insert(wrapper)

        highlight = Highlight(
            id=highlight_id,
            text=actual,
            property=metadata.property,
            color=color,
            source=metadata.source,
            confidence=metadata.confidence,
            section=metadata.section,
            sentence_index=metadata.sentence_index,
        )
        highlight.element = wrapper
        return highlight

    # --- remove ---------------------------------------------------------

    def _attached_wrapper(self, highlight: Highlight) -> Element:
        wrapper = highlight.element
        if wrapper is None or not self.document.is_attached(wrapper):
            msg = f"Wrapper for highlight {highlight.id} is not in the document"
            raise InvalidRangeError(msg)
        if wrapper.parent is None:
            msg = "The document root cannot be a highlight wrapper"
            raise InvalidRangeError(msg)
        return wrapper

    def remove(self, highlight: Highlight) -> str:
        """Unwrap *highlight*, returning the text put back in its place.

        The wrapper becomes one plain text node. Inline elements inside it
        are not rebuilt, so if ``apply`` had to split an element (a range
        ending inside ``<b>``, say) the text reads as before but the markup
        keeps the split: ``<p>The <b>cat sat</b></p>`` highlighted on
        "The cat" comes back as ``<p>The cat<b> sat</b></p>``.

        Raises:
            InvalidRangeError: The wrapper is no longer in the document.
        """
        wrapper = self._attached_wrapper(highlight)
        parent = wrapper.parent
        assert parent is not None

        text = pure_text(wrapper)
        if text != highlight.text:
            leak = DecorationLeakError(highlight.id, highlight.text, text)
            logger.warning("%s", leak.message)

        self.document.replace_node(wrapper, TextNode(text))
        self.document.normalize_siblings(parent)
        highlight.element = None
        return text

    # --- resize ---------------------------------------------------------

    def resize(self, highlight: Highlight, new_start: int, new_end: int) -> Element:
        """Narrow *highlight* to ``text[new_start:new_end]`` of its wrapper.

        The text outside the new bounds is put back as plain text on either
        side of a fresh wrapper carrying the same attributes and decoration
        children. The record's text is re-sliced in place; the caller
        re-points it at the returned wrapper.

        Raises:
            InvalidRangeError: Wrapper detached or bounds outside its text.
        """
        wrapper = self._attached_wrapper(highlight)
        parent = wrapper.parent
        assert parent is not None

        full = pure_text(wrapper)
        if not 0 <= new_start < new_end <= len(full):
            msg = (
                f"Bounds [{new_start}, {new_end}) invalid for highlight text "
                f"of length {len(full)}"
            )
            raise InvalidRangeError(msg)
        if not full[new_start:new_end].strip():
            msg = "Resized highlight would be empty"
            raise InvalidRangeError(msg)

        before, selected, after = (
            full[:new_start],
            full[new_start:new_end],
            full[new_end:],
        )
        decorations = [child for child in wrapper.children if is_decoration(child)]
        replacement = wrapper.shallow_clone()
        replacement.append(TextNode(selected))
        for decoration in decorations:
            replacement.append(decoration)

        ref = wrapper.next_sibling
        parent.remove_child(wrapper)
        for node in (TextNode(before), replacement, TextNode(after)):
            parent.insert_before(node, ref)
        self.document.normalize_siblings(parent)

        highlight.text = selected
        return replacement

    # --- in-place update --------------------------------------------------

    def update(
        self,
        highlight: Highlight,
        prop: PropertyRef | None = None,
        color: str | None = None,
    ) -> None:
        """Rewrite wrapper attributes and the record; text is untouched.

        Raises:
            InvalidRangeError: The wrapper is no longer in the document.
        """
        wrapper = self._attached_wrapper(highlight)
        if prop is not None:
            highlight.property = prop
            wrapper.set(ATTR_PROPERTY, prop.id)
            wrapper.set(ATTR_PROPERTY_LABEL, prop.label)
        if color is not None:
            highlight.color = color
            wrapper.set(ATTR_COLOR, color)
            wrapper.set("style", _style(color))
