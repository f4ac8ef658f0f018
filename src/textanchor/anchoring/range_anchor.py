"""Turn snapshot character offsets into concrete node ranges."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from textanchor.document.ranges import Range
from textanchor.errors import InvalidRangeError

if TYPE_CHECKING:
    from textanchor.anchoring.text_index import Snapshot

logger = logging.getLogger(__name__)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def resolve(snapshot: Snapshot, char_start: int, char_end: int) -> Range:
    """Build the range covering ``snapshot.text[char_start:char_end]``.

    Offsets outside the snapshot, or local offsets past the end of a node
    whose text has shrunk since the snapshot was taken, are clamped rather
    than rejected; each clamp is logged.

    Raises:
        InvalidRangeError: The snapshot is empty or a boundary node is gone.
    """
    if snapshot.is_empty:
        msg = "Cannot resolve a range against an empty snapshot"
        raise InvalidRangeError(msg)

    text_len = len(snapshot.text)
    start = _clamp(char_start, 0, text_len)
    end = _clamp(char_end, start, text_len)
    if (start, end) != (char_start, char_end):
        logger.warning(
            "Clamped range [%d, %d) to [%d, %d) (snapshot length %d)",
            char_start,
            char_end,
            start,
            end,
            text_len,
        )

    start_idx, start_local = snapshot.locate(start)
    if end == start:
        end_idx, end_local = start_idx, start_local
    else:
        end_idx, end_local = snapshot.locate(end, is_end=True)

    start_node = snapshot.node(start_idx)
    end_node = snapshot.node(end_idx)
    if start_node is None or end_node is None:
        msg = "Snapshot refers to a text node that no longer exists"
        raise InvalidRangeError(msg)

    clamped_start = _clamp(start_local, 0, len(start_node.data))
    clamped_end = _clamp(end_local, 0, len(end_node.data))
    if start_node is end_node:
        clamped_end = max(clamped_end, clamped_start)
    if (clamped_start, clamped_end) != (start_local, end_local):
        logger.warning(
            "Clamped local offsets (%d, %d) to (%d, %d)",
            start_local,
            end_local,
            clamped_start,
            clamped_end,
        )

    return Range.create(start_node, clamped_start, end_node, clamped_end)
