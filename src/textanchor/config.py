"""Centralised engine configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/textanchor/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Pastel palette used when a highlight is created without an explicit colour
DEFAULT_PALETTE = (
    "#FFE4B5",
    "#E6E6FA",
    "#F0E68C",
    "#FFB6C1",
    "#B0E0E6",
    "#98FB98",
    "#DDA0DD",
    "#F5DEB3",
    "#87CEEB",
    "#FFA07A",
    "#FFEFD5",
    "#F0FFF0",
)


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class SearchConfig(BaseModel):
    """Query bounds and default matching behaviour."""

    min_search_length: int = Field(default=10, ge=1)
    max_search_length: int = Field(default=1000, ge=1)
    fuzzy_segment_length: int = Field(default=40, ge=1)
    fuzzy_segment_overlap: int = Field(default=20, ge=0)
    normalize_whitespace: bool = True
    case_sensitive: bool = False
    whole_words: bool = False
    max_results: int = Field(default=10, ge=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> SearchConfig:
        if self.min_search_length > self.max_search_length:
            msg = (
                f"min_search_length ({self.min_search_length}) exceeds "
                f"max_search_length ({self.max_search_length})"
            )
            raise ValueError(msg)
        if self.fuzzy_segment_overlap >= self.fuzzy_segment_length:
            msg = "fuzzy_segment_overlap must be smaller than fuzzy_segment_length"
            raise ValueError(msg)
        return self


class CacheConfig(BaseModel):
    """Search memoisation and text-node snapshot lifetime."""

    search_cache_size: int = Field(default=100, ge=1)
    snapshot_ttl_ms: int = Field(default=5000, ge=0)


class HighlightConfig(BaseModel):
    """Highlight appearance defaults and selection limits."""

    default_color: str = "#ffeb3b"
    palette: tuple[str, ...] = DEFAULT_PALETTE
    min_selection_length: int = Field(default=2, ge=0)
    max_selection_length: int = Field(default=500, ge=1)
    confidence_high: float = Field(default=0.8, ge=0.0, le=1.0)
    confidence_medium: float = Field(default=0.5, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_thresholds(self) -> HighlightConfig:
        if self.confidence_medium > self.confidence_high:
            msg = "confidence_medium must not exceed confidence_high"
            raise ValueError(msg)
        if not self.palette:
            msg = "palette must contain at least one colour"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Engine settings with automatic .env loading and type validation.

    Environment variables use a ``TEXTANCHOR_`` prefix and double-underscore
    delimiter for nesting: ``TEXTANCHOR_SEARCH__MIN_SEARCH_LENGTH``,
    ``TEXTANCHOR_CACHE__SNAPSHOT_TTL_MS``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_prefix="TEXTANCHOR_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    search: SearchConfig = SearchConfig()
    cache: CacheConfig = CacheConfig()
    highlight: HighlightConfig = HighlightConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
