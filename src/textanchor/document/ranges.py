"""Text ranges over the node tree.

A ``Range`` spans from a (text node, offset) boundary to another, in document
order. It holds only weak references to its boundary nodes: a range kept in a
cache must not keep a node alive after the host drops it.

Extraction follows DOM semantics. Elements that are only partially covered
by the range are shallow-cloned into the extracted fragment, and the range
collapses to the point right after the partially covered start subtree.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from textanchor.document.nodes import Element, Node, TextNode
from textanchor.errors import InvalidRangeError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

# (container, offset): character offset for text nodes, child index for elements
BoundaryPoint = tuple[Node, int]


class SurroundContentsError(InvalidRangeError):
    """The range partially selects an element, so it cannot be surrounded."""


def _common_ancestor(a: Node, b: Node) -> Element:
    chain = {a, *a.ancestors()}
    node: Node | None = b
    while node is not None:
        if node in chain and isinstance(node, Element):
            return node
        node = node.parent
    msg = "Range boundaries do not share a common ancestor"
    raise InvalidRangeError(msg)


def _child_containing(ancestor: Element, node: Node) -> Node:
    """The child of *ancestor* that is an inclusive ancestor of *node*."""
    while node.parent is not ancestor:
        if node.parent is None:
            msg = "Node is not inside the expected ancestor"
            raise InvalidRangeError(msg)
        node = node.parent
    return node


def _tree_path(node: Node) -> tuple[Node, list[int]]:
    """Root node and child-index path from the root down to *node*."""
    path: list[int] = []
    while node.parent is not None:
        path.append(node.index)
        node = node.parent
    path.reverse()
    return node, path


def _partials(
    start: Node, end: Node, common: Element
) -> tuple[Node | None, Node | None]:
    first = last = None
    if not start.is_inclusive_ancestor_of(end):
        first = _child_containing(common, start)
    if not end.is_inclusive_ancestor_of(start):
        last = _child_containing(common, end)
    return first, last


def _extract(
    start: Node, start_offset: int, end: Node, end_offset: int
) -> tuple[list[Node], BoundaryPoint]:
    """Remove the content between two boundary points.

    Returns the extracted nodes and the point where the range collapsed to.
    """
    if start is end and isinstance(start, TextNode):
        data = start.data
        start.data = data[:start_offset] + data[end_offset:]
        return [TextNode(data[start_offset:end_offset])], (start, start_offset)

    common = _common_ancestor(start, end)
    first, last = _partials(start, end, common)

    start_idx = first.index + 1 if first is not None else start_offset
    end_idx = last.index if last is not None else end_offset
    contained = common.children[start_idx:end_idx]
    point: BoundaryPoint = (
        (start, start_offset) if first is None else (common, first.index + 1)
    )

    fragment: list[Node] = []
    if isinstance(first, TextNode):
        fragment.append(TextNode(first.data[start_offset:]))
        first.data = first.data[:start_offset]
    elif isinstance(first, Element):
        clone = first.shallow_clone()
        sub, _ = _extract(start, start_offset, first, len(first.children))
        for node in sub:
            clone.append(node)
        fragment.append(clone)

    for node in contained:
        fragment.append(common.remove_child(node))

    if isinstance(last, TextNode):
        fragment.append(TextNode(last.data[:end_offset]))
        last.data = last.data[end_offset:]
    elif isinstance(last, Element):
        clone = last.shallow_clone()
        sub, _ = _extract(last, 0, end, end_offset)
        for node in sub:
            clone.append(node)
        fragment.append(clone)

    return fragment, point


def insert_at(point: BoundaryPoint, node: Node) -> None:
    """Insert *node* at a boundary point, splitting a text node if needed."""
    container, offset = point
    if isinstance(container, TextNode):
        parent = container.parent
        if parent is None:
            msg = "Cannot insert next to a detached text node"
            raise InvalidRangeError(msg)
        if offset <= 0:
            parent.insert_before(node, container)
        elif offset >= len(container.data):
            parent.insert_after(node, container)
        else:
            tail = TextNode(container.data[offset:])
            container.data = container.data[:offset]
            parent.insert_after(tail, container)
            parent.insert_before(node, tail)
    elif isinstance(container, Element):
        ref = container.children[offset] if offset < len(container.children) else None
        container.insert_before(node, ref)


@dataclass
class ExtractedContents:
    """Nodes removed by ``Range.extract_contents`` and where they came from."""

    nodes: list[Node]
    point: BoundaryPoint

    def insert(self, node: Node) -> None:
        insert_at(self.point, node)


@dataclass(frozen=True)
class Range:
    """Immutable span between two text-node boundary points."""

    _start: weakref.ref[TextNode] = field(repr=False)
    start_offset: int
    _end: weakref.ref[TextNode] = field(repr=False)
    end_offset: int

    @classmethod
    def create(
        cls, start: TextNode, start_offset: int, end: TextNode, end_offset: int
    ) -> Range:
        if not isinstance(start, TextNode) or not isinstance(end, TextNode):
            msg = "Range boundaries must be text nodes"
            raise InvalidRangeError(msg)
        if not 0 <= start_offset <= len(start.data):
            msg = f"Start offset {start_offset} beyond text length {len(start.data)}"
            raise InvalidRangeError(msg)
        if not 0 <= end_offset <= len(end.data):
            msg = f"End offset {end_offset} beyond text length {len(end.data)}"
            raise InvalidRangeError(msg)
        if start is end:
            if end_offset < start_offset:
                msg = "Range end precedes its start"
                raise InvalidRangeError(msg)
        else:
            start_root, start_path = _tree_path(start)
            end_root, end_path = _tree_path(end)
            if start_root is not end_root:
                msg = "Range boundaries are in different trees"
                raise InvalidRangeError(msg)
            if end_path < start_path:
                msg = "Range end precedes its start"
                raise InvalidRangeError(msg)
        return cls(weakref.ref(start), start_offset, weakref.ref(end), end_offset)

    @property
    def start_node(self) -> TextNode | None:
        return self._start()

    @property
    def end_node(self) -> TextNode | None:
        return self._end()

    @property
    def collapsed(self) -> bool:
        return self.start_node is self.end_node and self.start_offset == self.end_offset

    def _nodes(self) -> tuple[TextNode, TextNode]:
        start, end = self.start_node, self.end_node
        if start is None or end is None:
            msg = "Range boundary node no longer exists"
            raise InvalidRangeError(msg)
        return start, end

    def is_attached(self, root: Element) -> bool:
        """True when both boundaries are still inside *root* and in bounds."""
        start, end = self.start_node, self.end_node
        if start is None or end is None:
            return False
        if not root.is_inclusive_ancestor_of(start):
            return False
        if not root.is_inclusive_ancestor_of(end):
            return False
        return self.start_offset <= len(start.data) and self.end_offset <= len(end.data)

    def iter_text_nodes(self) -> Iterator[TextNode]:
        """Text nodes touched by the range, in document order."""
        start, end = self._nodes()
        if start is end:
            yield start
            return
        common = _common_ancestor(start, end)
        inside = False
        for node in common.iter_text_nodes():
            if node is start:
                inside = True
            if inside:
                yield node
            if node is end:
                return

    def to_string(self) -> str:
        start, end = self._nodes()
        if start is end:
            return start.data[self.start_offset : self.end_offset]
        parts: list[str] = []
        for node in self.iter_text_nodes():
            if node is start:
                parts.append(node.data[self.start_offset :])
            elif node is end:
                parts.append(node.data[: self.end_offset])
            else:
                parts.append(node.data)
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_string()

    def extract_contents(self) -> ExtractedContents:
        start, end = self._nodes()
        nodes, point = _extract(start, self.start_offset, end, self.end_offset)
        return ExtractedContents(nodes, point)

    def insert_node(self, node: Node) -> None:
        """Insert *node* at the start boundary."""
        start, _ = self._nodes()
        insert_at((start, self.start_offset), node)

    def surround_contents(self, wrapper: Element) -> Element:
        """Move the range's content into *wrapper* and put it in its place.

        Raises:
            SurroundContentsError: The range partially selects an element.
        """
        start, end = self._nodes()
        if start is not end:
            first, last = _partials(start, end, _common_ancestor(start, end))
            if isinstance(first, Element) or isinstance(last, Element):
                msg = "Range partially selects an element and cannot be surrounded"
                raise SurroundContentsError(msg)
        extracted = self.extract_contents()
        for node in extracted.nodes:
            wrapper.append(node)
        extracted.insert(wrapper)
        return wrapper
