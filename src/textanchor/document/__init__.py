"""Host document abstraction: node tree, ranges, and HTML I/O."""

from textanchor.document.html_io import parse_html, to_html
from textanchor.document.nodes import Document, Element, Node, TextNode
from textanchor.document.ranges import ExtractedContents, Range, SurroundContentsError

__all__ = [
    "Document",
    "Element",
    "ExtractedContents",
    "Node",
    "Range",
    "SurroundContentsError",
    "TextNode",
    "parse_html",
    "to_html",
]
