"""HTML loading and serialisation for the node tree.

Parsing walks the selectolax tree via ``child``/``next`` iteration, which
exposes text nodes (tag ``-text``) alongside elements. Comments and other
non-content node kinds are dropped. When the markup has a ``<body>``, that
element becomes the tree root.
"""

from __future__ import annotations

import html as html_module
import logging
from typing import Any

from selectolax.lexbor import LexborHTMLParser

from textanchor.document.nodes import Element, Node, TextNode

logger = logging.getLogger(__name__)

# selectolax pseudo-tags for non-element nodes
_TEXT_TAG = "-text"
_NON_ELEMENT_PREFIXES = ("-", "_", "!")

_VOID_TAGS = frozenset(
    (
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    )
)


def _attributes(node: Any) -> dict[str, str]:
    return {k: v if v is not None else "" for k, v in node.attributes.items()}


def _convert(node: Any, parent: Element) -> None:
    tag = node.tag
    if tag == _TEXT_TAG:
        text = node.text_content
        if text:
            parent.append(TextNode(text))
        return
    if tag is None or tag.startswith(_NON_ELEMENT_PREFIXES):
        return

    element = Element(tag, _attributes(node))
    parent.append(element)

    child = node.child
    while child is not None:
        _convert(child, element)
        child = child.next


def parse_html(html: str) -> Element:
    """Parse *html* into a detached ``Element`` tree.

    Returns the ``<body>`` element for full documents and fragments alike
    (lexbor wraps fragments in an implied body).
    """
    tree = LexborHTMLParser(html or "")
    source = tree.body if tree.body is not None else tree.root
    root = Element("body")
    if source is None:
        return root

    if source.tag == "body":
        root.attrs = _attributes(source)
        child = source.child
        while child is not None:
            _convert(child, root)
            child = child.next
    else:
        _convert(source, root)

    logger.debug("Parsed HTML into %d nodes", sum(1 for _ in root.iter_descendants()))
    return root


def _attrs_html(attrs: dict[str, str]) -> str:
    return "".join(
        f' {name}="{html_module.escape(value, quote=True)}"'
        for name, value in attrs.items()
    )


def to_html(node: Node, *, include_self: bool = True) -> str:
    """Serialise *node* (or only its children) back to markup."""
    if isinstance(node, TextNode):
        return html_module.escape(node.data, quote=False)
    assert isinstance(node, Element)

    inner = "".join(to_html(child) for child in node.children)
    if not include_self:
        return inner
    open_tag = f"<{node.tag}{_attrs_html(node.attrs)}>"
    if node.tag in _VOID_TAGS and not node.children:
        return open_tag
    return f"{open_tag}{inner}</{node.tag}>"
