"""Value types for highlights and the metadata used to create them."""

from __future__ import annotations

import time
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from textanchor.document.nodes import Element

HighlightSource = Literal["manual", "rag"]


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class PropertyRef:
    """The annotation property a highlight is tagged with."""

    id: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "label": self.label}


@dataclass(frozen=True)
class HighlightMetadata:
    """Caller-supplied description of a highlight to create.

    ``color`` may be omitted; the engine then derives one from the property.
    ``confidence``, ``section`` and ``sentence_index`` are only meaningful for
    highlights produced by the retrieval pipeline (``source="rag"``).
    """

    property: PropertyRef
    text: str = ""
    color: str | None = None
    source: HighlightSource = "manual"
    confidence: float | None = None
    section: str | None = None
    sentence_index: int | None = None


@dataclass
class Highlight:
    """A registered highlight.

    ``text`` is the verbatim content covered at creation time and is re-sliced
    on resize. The wrapper element is held weakly: the document owns it.
    """

    id: str
    text: str
    property: PropertyRef
    color: str
    source: HighlightSource = "manual"
    confidence: float | None = None
    section: str | None = None
    sentence_index: int | None = None
    timestamp: int = field(default_factory=_now_ms)
    _element_ref: weakref.ref[Element] | None = field(
        default=None, repr=False, compare=False
    )

    @property
    def element(self) -> Element | None:
        """The wrapper element, or None once it has been garbage-collected."""
        return self._element_ref() if self._element_ref is not None else None

    @element.setter
    def element(self, value: Element | None) -> None:
        self._element_ref = weakref.ref(value) if value is not None else None

    def to_dict(self) -> dict[str, Any]:
        """Serialisable record of the highlight (no document references)."""
        return {
            "id": self.id,
            "text": self.text,
            "property": self.property.to_dict(),
            "color": self.color,
            "timestamp": self.timestamp,
            "source": self.source,
            "confidence": self.confidence,
            "section": self.section,
            "sentence_index": self.sentence_index,
        }
