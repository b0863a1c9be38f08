"""Tests de setup_logging / parse_level."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from comiccorpus.core.utils.logging import parse_level, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "crawl.log"
    logger = setup_logging(level=logging.DEBUG, log_file=log_file)
    assert logger.name == "comiccorpus"
    logging.getLogger("comiccorpus.core.crawl").info("Épisode 3 persisté")
    for handler in logging.getLogger().handlers:
        handler.flush()
    content = log_file.read_text(encoding="utf-8")
    assert "[INFO] comiccorpus.core.crawl: Épisode 3 persisté" in content


def test_setup_logging_twice_keeps_single_console_handler() -> None:
    setup_logging()
    setup_logging()
    assert len(logging.getLogger().handlers) == 1
    assert logging.getLogger("httpx").level == logging.WARNING


@pytest.mark.parametrize(
    "value, expected",
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), (None, logging.INFO), ("bogus", logging.INFO), (40, 40)],
)
def test_parse_level(value, expected) -> None:
    assert parse_level(value) == expected
