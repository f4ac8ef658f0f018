"""Locating text in a live document: snapshots, normalisation, search."""

from textanchor.anchoring.cache import SearchCache
from textanchor.anchoring.normalizer import variants
from textanchor.anchoring.range_anchor import resolve
from textanchor.anchoring.search import (
    MatchResult,
    SearchOptions,
    SearchStats,
    SearchStrategyChain,
)
from textanchor.anchoring.text_index import Snapshot, TextNodeIndex, default_exclude

__all__ = [
    "MatchResult",
    "SearchCache",
    "SearchOptions",
    "SearchStats",
    "SearchStrategyChain",
    "Snapshot",
    "TextNodeIndex",
    "default_exclude",
    "resolve",
    "variants",
]
