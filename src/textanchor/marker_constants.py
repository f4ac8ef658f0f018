"""Class names and attributes for highlight wrappers and their decorations.

The wrapper element marks a highlighted span in the host document. Hosts hang
decoration subtrees (marker icons, action menus, tooltips) inside wrappers;
those subtrees carry no document text and must never leak into searches or
into the text restored when a highlight is removed.
"""

from __future__ import annotations

WRAPPER_TAG = "mark"
WRAPPER_CLASS = "textanchor-highlight"
RAG_WRAPPER_CLASS = "textanchor-rag-highlight"

ATTR_HIGHLIGHT_ID = "data-highlight-id"
ATTR_PROPERTY = "data-property"
ATTR_PROPERTY_LABEL = "data-property-label"
ATTR_COLOR = "data-color"
ATTR_SOURCE = "data-source"
ATTR_CONFIDENCE = "data-confidence"

# Decoration subtrees skipped when reconstructing a wrapper's text
DECORATION_CLASSES = frozenset(
    (
        "textanchor-marker",
        "textanchor-marker-menu",
        "textanchor-marker-tooltip",
        "textanchor-marker-icon-container",
        "textanchor-marker-type-indicator",
    )
)

# UI chrome that is never document content
UI_CHROME_CLASSES = frozenset(
    (
        "textanchor-property-window",
        "textanchor-tooltip",
        "textanchor-menu",
    )
)

# Subtrees excluded from text snapshots
SKIP_SUBTREE_CLASSES = DECORATION_CLASSES | UI_CHROME_CLASSES | {WRAPPER_CLASS}
