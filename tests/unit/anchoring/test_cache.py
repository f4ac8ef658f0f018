"""Tests for the bounded FIFO search cache."""

from __future__ import annotations

import pytest

from textanchor.anchoring.cache import SearchCache


class TestSearchCache:
    """Tests for SearchCache eviction and access."""

    def test_bounded_fifo_eviction(self) -> None:
        """150 inserts into a 100-entry cache keep the newest 100."""
        cache: SearchCache[int] = SearchCache(max_size=100)
        for i in range(150):
            cache.set(f"query-{i}", i)

        assert len(cache) == 100
        assert "query-0" not in cache
        assert "query-49" not in cache
        assert "query-50" in cache
        assert cache.keys()[0] == "query-50"
        assert cache.get("query-149") == 149

    def test_get_does_not_refresh_position(self) -> None:
        """Reads do not protect an entry from eviction."""
        cache: SearchCache[str] = SearchCache(max_size=2)
        cache.set("a", "A")
        cache.set("b", "B")
        assert cache.get("a") == "A"
        cache.set("c", "C")
        assert cache.get("a") is None
        assert cache.keys() == ["b", "c"]

    def test_overwrite_keeps_size(self) -> None:
        cache: SearchCache[str] = SearchCache(max_size=2)
        cache.set("a", "A")
        cache.set("b", "B")
        cache.set("a", "A2")
        assert len(cache) == 2
        assert cache.get("a") == "A2"

    def test_clear(self) -> None:
        cache: SearchCache[int] = SearchCache()
        cache.set("a", 1)
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None

    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            SearchCache(max_size=0)
