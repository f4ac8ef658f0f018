"""Tests for HighlightRegistry indexes."""

from __future__ import annotations

import gc

from textanchor.document import Element
from textanchor.highlighting.models import Highlight, PropertyRef
from textanchor.highlighting.registry import HighlightRegistry

PROP = PropertyRef("p1", "Subject")


def _highlight(
    highlight_id: str, source: str = "manual", element: Element | None = None
) -> Highlight:
    highlight = Highlight(
        id=highlight_id,
        text="cat sat",
        property=PROP,
        color="#ffeb3b",
        source=source,  # type: ignore[arg-type]
    )
    highlight.element = element
    return highlight


class TestRegisterAndLookup:
    """Tests for register() and the lookup methods."""

    def test_register_and_get(self) -> None:
        registry = HighlightRegistry()
        h = registry.register(_highlight("a"))
        assert registry.get("a") is h
        assert registry.has("a")
        assert "a" in registry
        assert len(registry) == 1
        assert registry.get("missing") is None

    def test_get_by_type(self) -> None:
        registry = HighlightRegistry()
        registry.register(_highlight("a"))
        registry.register(_highlight("b", "rag"))
        registry.register(_highlight("c", "rag"))
        assert [h.id for h in registry.get_by_type("rag")] == ["b", "c"]
        assert [h.id for h in registry.get_by_type("manual")] == ["a"]
        assert registry.get_by_type("other") == []

    def test_get_by_element(self) -> None:
        registry = HighlightRegistry()
        wrapper = Element("mark")
        h = registry.register(_highlight("a", element=wrapper))
        assert registry.get_by_element(wrapper) is h
        assert registry.get_by_element(Element("mark")) is None

    def test_find(self) -> None:
        registry = HighlightRegistry()
        registry.register(_highlight("a"))
        registry.register(_highlight("b", "rag"))
        found = registry.find(lambda h: h.source == "rag")
        assert [h.id for h in found] == ["b"]

    def test_reregister_replaces_indexes(self) -> None:
        """Registering an existing id moves it between type buckets."""
        registry = HighlightRegistry()
        registry.register(_highlight("a"))
        registry.register(_highlight("a", "rag"))
        assert len(registry) == 1
        assert registry.get_by_type("manual") == []
        assert [h.id for h in registry.get_by_type("rag")] == ["a"]
        assert registry.stats()["created"] == 1


class TestRemoval:
    """Tests for unregister(), clear() and clear_type()."""

    def test_unregister_removes_from_all_indexes(self) -> None:
        registry = HighlightRegistry()
        wrapper = Element("mark")
        registry.register(_highlight("a", "rag", wrapper))
        removed = registry.unregister("a")
        assert removed is not None
        assert registry.get("a") is None
        assert registry.get_by_type("rag") == []
        assert registry.get_by_element(wrapper) is None
        assert registry.unregister("a") is None

    def test_clear_type(self) -> None:
        registry = HighlightRegistry()
        registry.register(_highlight("a"))
        registry.register(_highlight("b", "rag"))
        assert registry.clear_type("rag") == 1
        assert [h.id for h in registry.get_all()] == ["a"]

    def test_clear(self) -> None:
        registry = HighlightRegistry()
        registry.register(_highlight("a"))
        registry.register(_highlight("b", "rag"))
        assert registry.clear() == 2
        assert registry.get_all() == []
        assert registry.stats() == {
            "created": 2,
            "deleted": 2,
            "active": 0,
            "by_type": {},
        }


class TestElementIndex:
    """The element index must not keep wrappers alive."""

    def test_weak_element_index(self) -> None:
        registry = HighlightRegistry()
        wrapper = Element("mark")
        registry.register(_highlight("a", element=wrapper))
        del wrapper
        gc.collect()
        assert len(registry._by_element) == 0
        # The record survives; only the back-reference is gone.
        assert registry.get("a") is not None
        assert registry.get("a").element is None  # type: ignore[union-attr]

    def test_update_element_repoints_index(self) -> None:
        registry = HighlightRegistry()
        old, new = Element("mark"), Element("mark")
        h = registry.register(_highlight("a", element=old))
        registry.update_element(h, new)
        assert h.element is new
        assert registry.get_by_element(new) is h
        assert registry.get_by_element(old) is None
