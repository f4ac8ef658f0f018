"""Shared pytest fixtures for textanchor tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from textanchor.config import CacheConfig, SearchConfig, Settings, get_settings
from textanchor.document import Document
from textanchor.highlighting import TextHighlighter

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Isolated settings with a short minimum query length."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        search=SearchConfig(min_search_length=5),
        cache=CacheConfig(),
    )


@pytest.fixture
def make_document() -> Callable[[str], Document]:
    return Document.from_html


@pytest.fixture
def make_highlighter(
    settings: Settings, clock: FakeClock
) -> Callable[[str], TextHighlighter]:
    """Build an engine over freshly parsed HTML."""

    def _make(html: str) -> TextHighlighter:
        return TextHighlighter(Document.from_html(html), settings, clock=clock)

    return _make
