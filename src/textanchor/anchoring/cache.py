"""Bounded FIFO memoisation of search results."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class SearchCache(Generic[V]):
    """Insertion-ordered cache that evicts its oldest entry when full.

    Reads do not refresh an entry's position; this is FIFO, not LRU.
    """

    def __init__(self, max_size: int = 100) -> None:
        if max_size < 1:
            msg = f"max_size must be positive, got {max_size}"
            raise ValueError(msg)
        self.max_size = max_size
        self._entries: OrderedDict[Hashable, V] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get(self, key: Hashable) -> V | None:
        return self._entries.get(key)

    def set(self, key: Hashable, value: V) -> None:
        if key in self._entries:
            self._entries[key] = value
            return
        while len(self._entries) >= self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Search cache full, evicted %r", evicted)
        self._entries[key] = value

    def keys(self) -> list[Hashable]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
