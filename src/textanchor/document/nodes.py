"""Mutable node tree that the anchoring engine operates on.

The tree is owned by the host (whatever renders or edits the document). The
engine only ever holds weak references into it and re-checks attachment
before each use, because the host may insert or remove nodes at any time.

Nodes compare by identity, so they can be used as dict keys and in
``weakref.WeakKeyDictionary`` indexes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from textanchor.document.ranges import Range

logger = logging.getLogger(__name__)


class Node:
    """Base class for tree nodes."""

    def __init__(self) -> None:
        self.parent: Element | None = None

    @property
    def text_content(self) -> str:
        raise NotImplementedError

    def ancestors(self) -> Iterator[Element]:
        """Yield parents from the nearest outwards."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def is_inclusive_ancestor_of(self, other: Node) -> bool:
        node: Node | None = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    @property
    def index(self) -> int:
        """Position of this node among its parent's children."""
        if self.parent is None:
            msg = "Node has no parent"
            raise ValueError(msg)
        for i, child in enumerate(self.parent.children):
            if child is self:
                return i
        msg = "Node not found among its parent's children"
        raise ValueError(msg)

    @property
    def next_sibling(self) -> Node | None:
        if self.parent is None:
            return None
        siblings = self.parent.children
        i = self.index
        return siblings[i + 1] if i + 1 < len(siblings) else None

    def detach(self) -> None:
        """Remove this node from its parent, if any."""
        if self.parent is not None:
            self.parent.remove_child(self)


class TextNode(Node):
    """Leaf node carrying text."""

    def __init__(self, data: str = "") -> None:
        super().__init__()
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"TextNode({self.data[:30]!r})"


class Element(Node):
    """Branch node with a tag, attributes, and ordered children.

    Children given as plain strings become ``TextNode`` instances, which
    keeps hand-built test trees short::

        Element("p", children=["The ", Element("b", children=["cat"])])
    """

    def __init__(
        self,
        tag: str,
        attrs: dict[str, str] | None = None,
        children: Iterable[Node | str] | None = None,
    ) -> None:
        super().__init__()
        self.tag = tag.lower()
        self.attrs: dict[str, str] = dict(attrs or {})
        self.children: list[Node] = []
        for child in children or ():
            self.append(TextNode(child) if isinstance(child, str) else child)

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, children={len(self.children)})"

    # --- attributes -------------------------------------------------------

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attrs.get(name, default)

    def set(self, name: str, value: str) -> None:
        self.attrs[name] = value

    @property
    def classes(self) -> list[str]:
        return self.attrs.get("class", "").split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    # --- structure --------------------------------------------------------

    def _adopt(self, node: Node) -> None:
        if node.is_inclusive_ancestor_of(self):
            msg = "Cannot insert a node into its own subtree"
            raise ValueError(msg)
        node.detach()
        node.parent = self

    def append(self, node: Node) -> Node:
        self._adopt(node)
        self.children.append(node)
        return node

    def insert_before(self, node: Node, ref: Node | None) -> Node:
        """Insert *node* before *ref*; append when *ref* is None."""
        if ref is None:
            return self.append(node)
        if ref.parent is not self:
            msg = "Reference node is not a child of this element"
            raise ValueError(msg)
        self._adopt(node)
        self.children.insert(ref.index, node)
        return node

    def insert_after(self, node: Node, ref: Node) -> Node:
        return self.insert_before(node, ref.next_sibling)

    def remove_child(self, node: Node) -> Node:
        if node.parent is not self:
            msg = "Node is not a child of this element"
            raise ValueError(msg)
        del self.children[node.index]
        node.parent = None
        return node

    def replace_child(self, new: Node, old: Node) -> Node:
        ref = old.next_sibling
        self.remove_child(old)
        self.insert_before(new, ref)
        return old

    def normalize(self) -> None:
        """Merge adjacent text children and drop empty ones (non-recursive)."""
        merged: list[Node] = []
        for child in self.children:
            if isinstance(child, TextNode):
                if not child.data:
                    child.parent = None
                    continue
                prev = merged[-1] if merged else None
                if isinstance(prev, TextNode):
                    prev.data += child.data
                    child.parent = None
                    continue
            merged.append(child)
        self.children = merged

    def shallow_clone(self) -> Element:
        return Element(self.tag, self.attrs)

    # --- traversal --------------------------------------------------------

    def iter_descendants(self) -> Iterator[Node]:
        """Depth-first, document-order traversal (excluding self)."""
        stack: list[Node] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Element):
                stack.extend(reversed(node.children))

    def iter_elements(self) -> Iterator[Element]:
        for node in self.iter_descendants():
            if isinstance(node, Element):
                yield node

    def iter_text_nodes(self) -> Iterator[TextNode]:
        for node in self.iter_descendants():
            if isinstance(node, TextNode):
                yield node

    @property
    def text_content(self) -> str:
        return "".join(node.data for node in self.iter_text_nodes())

    @property
    def next_element_sibling(self) -> Element | None:
        node = self.next_sibling
        while node is not None and not isinstance(node, Element):
            node = node.next_sibling
        return node


class Document:
    """The host document as seen by the engine.

    Implements the small set of operations the anchoring engine consumes:
    leaf-text walking, range creation, text access, node replacement and
    sibling normalisation.
    """

    def __init__(self, root: Element) -> None:
        self.root = root

    @classmethod
    def from_html(cls, html: str) -> Document:
        from textanchor.document.html_io import parse_html

        return cls(parse_html(html))

    def to_html(self) -> str:
        from textanchor.document.html_io import to_html

        return to_html(self.root, include_self=False)

    @property
    def text_content(self) -> str:
        return self.root.text_content

    def is_attached(self, node: Node | None) -> bool:
        """True when *node* is the root or a descendant of it."""
        return node is not None and self.root.is_inclusive_ancestor_of(node)

    def walk_leaf_text_nodes(
        self,
        root: Element | None = None,
        exclude: Callable[[Element], bool] | None = None,
    ) -> list[TextNode]:
        """Text leaves under *root* in document order.

        Subtrees whose element matches *exclude* are skipped entirely.
        """
        start = self.root if root is None else root
        result: list[TextNode] = []
        stack: list[Node] = list(reversed(start.children))
        while stack:
            node = stack.pop()
            if isinstance(node, TextNode):
                result.append(node)
            elif isinstance(node, Element):
                if exclude is not None and exclude(node):
                    continue
                stack.extend(reversed(node.children))
        return result

    def create_range(
        self, start: TextNode, start_offset: int, end: TextNode, end_offset: int
    ) -> Range:
        from textanchor.document.ranges import Range

        return Range.create(start, start_offset, end, end_offset)

    @staticmethod
    def node_text(node: Node) -> str:
        return node.text_content

    @staticmethod
    def replace_node(old: Node, new: Node) -> None:
        if old.parent is None:
            msg = "Cannot replace a detached node"
            raise ValueError(msg)
        old.parent.replace_child(new, old)

    @staticmethod
    def normalize_siblings(parent: Element) -> None:
        parent.normalize()
