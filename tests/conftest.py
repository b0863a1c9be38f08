"""Fixtures pytest communes."""
import datetime

import pytest
from pathlib import Path

from comiccorpus.core.storage.db import CrawlDB

# Répertoire des fixtures
FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"

# Instant "now" des runs de test
FIXED_NOW = datetime.datetime(2024, 5, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def db(tmp_path: Path) -> CrawlDB:
    crawl_db = CrawlDB(tmp_path / "crawl.sqlite")
    crawl_db.init()
    return crawl_db


@pytest.fixture
def fixed_now() -> datetime.datetime:
    return FIXED_NOW
