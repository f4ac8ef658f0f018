"""textanchor - locate text in a live document tree and highlight it.

Search cascades from exact to progressively more tolerant strategies;
highlights wrap the located span and can be resized or removed with the
document text restored exactly.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from textanchor.document import Document, Element, Range, TextNode
from textanchor.errors import (
    InvalidRangeError,
    QueryTooLongError,
    QueryTooShortError,
    StaleAnchorError,
    TextAnchorError,
)
from textanchor.highlighting import (
    Highlight,
    HighlightMetadata,
    PropertyRef,
    TextHighlighter,
)

__version__ = "0.1.0"

__all__ = [
    "Document",
    "Element",
    "Highlight",
    "HighlightMetadata",
    "InvalidRangeError",
    "PropertyRef",
    "QueryTooLongError",
    "QueryTooShortError",
    "Range",
    "StaleAnchorError",
    "TextAnchorError",
    "TextHighlighter",
    "TextNode",
    "setup_logging",
]


def setup_logging(log_dir: Path | str | None = None) -> Path | None:
    """Configure logging to the console and, optionally, a rotating file.

    Library code only emits records; hosts call this once at start-up. With
    *log_dir* set, DEBUG and above also go to ``<log_dir>/textanchor.log``
    (10MB, keep 5 backups). Returns the log file path, if any.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Console handler - less verbose
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return None

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / "textanchor.log"

    # File handler - detailed logging with rotation
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(file_handler)

    logging.info("Logging configured. Log file: %s", log_file.absolute())
    return log_file
