"""Tests for setup_logging()."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from textanchor import setup_logging


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestSetupLogging:
    """setup_logging() wires console and optional rotating file output."""

    def test_console_only(self, restore_root_logger: logging.Logger) -> None:
        before = len(restore_root_logger.handlers)
        assert setup_logging() is None
        assert len(restore_root_logger.handlers) == before + 1
        assert restore_root_logger.level == logging.DEBUG

    def test_file_handler(
        self, tmp_path: Path, restore_root_logger: logging.Logger
    ) -> None:
        log_file = setup_logging(tmp_path / "logs")
        assert log_file == tmp_path / "logs" / "textanchor.log"
        assert log_file.exists()

        file_handlers = [
            h
            for h in restore_root_logger.handlers
            if isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 10 * 1024 * 1024
        assert file_handlers[0].backupCount == 5

        logging.getLogger("textanchor.test").debug("written to file")
        file_handlers[0].flush()
        contents = log_file.read_text(encoding="utf-8")
        assert "Logging configured" in contents
        assert "written to file" in contents
