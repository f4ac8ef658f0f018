"""Highlight creation, removal and bookkeeping over a live document."""

from textanchor.highlighting.applier import HighlightApplier, pure_text
from textanchor.highlighting.highlighter import TextHighlighter
from textanchor.highlighting.models import Highlight, HighlightMetadata, PropertyRef
from textanchor.highlighting.registry import HighlightRegistry

__all__ = [
    "Highlight",
    "HighlightApplier",
    "HighlightMetadata",
    "HighlightRegistry",
    "PropertyRef",
    "TextHighlighter",
    "pure_text",
]
