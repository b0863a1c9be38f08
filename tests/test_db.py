"""Tests de la passerelle SQLite : registre, titres, épisode + images en une transaction."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from comiccorpus.core.errors import PersistenceFailure
from comiccorpus.core.models import AssetRecord, EpisodeRecord, Provider, TargetStatus
from comiccorpus.core.storage.db import SCHEMA_VERSION, CrawlDB

TS = "2024-05-01T12:00:00Z"


def _episode(seq: int, images: int = 2, comic_id: str = "sample") -> tuple[EpisodeRecord, list[AssetRecord]]:
    episode = EpisodeRecord(Provider.NAVER, comic_id, seq, f"{seq}화", images, TS, TS)
    assets = [
        AssetRecord(Provider.NAVER, comic_id, seq, i, f"img-{seq}-{i}".encode(), TS)
        for i in range(1, images + 1)
    ]
    return episode, assets


def test_init_is_idempotent(tmp_path: Path) -> None:
    db = CrawlDB(tmp_path / "sub" / "crawl.sqlite")
    db.init()
    db.init()
    assert db.get_schema_version() == SCHEMA_VERSION
    conn = sqlite3.connect(db.db_path)
    try:
        assert conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0] == 1
    finally:
        conn.close()


def test_targets_registry_order_and_status(db: CrawlDB) -> None:
    db.add_target(Provider.NAVER, "123")
    db.add_target(Provider.LEZHIN, "abc", TargetStatus.DISABLED)
    db.add_target(Provider.NAVER, "456")
    assert [t.external_id for t in db.load_targets()] == ["123", "abc", "456"]
    assert [t.external_id for t in db.load_enabled_targets()] == ["123", "456"]

    assert db.set_target_status(Provider.NAVER, "456", TargetStatus.COMPLETE)
    assert not db.set_target_status(Provider.NAVER, "missing", TargetStatus.COMPLETE)
    assert [t.external_id for t in db.load_enabled_targets()] == ["123"]


def test_add_target_twice_updates_status_only(db: CrawlDB) -> None:
    db.add_target(Provider.NAVER, "123")
    db.update_target_attempt(Provider.NAVER, "123", TS)
    db.add_target(Provider.NAVER, "123", TargetStatus.DISABLED)
    targets = db.load_targets()
    assert len(targets) == 1
    assert targets[0].status == TargetStatus.DISABLED
    assert targets[0].last_attempt == TS


def test_title_policy(db: CrawlDB) -> None:
    db.upsert_title(Provider.LEZHIN, "abc", None)
    assert db.get_title(Provider.LEZHIN, "abc").title is None
    assert db.get_titles_missing(Provider.LEZHIN) == ["abc"]

    db.upsert_title(Provider.LEZHIN, "abc", "First")
    db.upsert_title(Provider.LEZHIN, "abc", None)
    assert db.get_title(Provider.LEZHIN, "abc").title == "First"

    db.upsert_title(Provider.LEZHIN, "abc", "Renamed")
    assert db.get_title(Provider.LEZHIN, "abc").title == "Renamed"
    assert db.get_titles_missing(Provider.LEZHIN) == []
    assert db.get_title(Provider.NAVER, "abc") is None


def test_insert_episode_with_assets(db: CrawlDB) -> None:
    episode, assets = _episode(1, images=3)
    assert not db.exists(Provider.NAVER, "sample", 1)
    db.insert_episode_with_assets(episode, assets)
    assert db.exists(Provider.NAVER, "sample", 1)
    stored = db.get_episode(Provider.NAVER, "sample", 1)
    assert stored == episode
    assert [a.image_seq for a in db.get_assets(Provider.NAVER, "sample", 1)] == [1, 2, 3]
    assert db.get_assets(Provider.NAVER, "sample", 1)[0].data == b"img-1-1"
    assert db.count_episodes() == 1
    assert db.count_assets(Provider.NAVER, "sample") == 3


def test_duplicate_episode_rolls_back_everything(db: CrawlDB) -> None:
    episode, assets = _episode(1, images=2)
    db.insert_episode_with_assets(episode, assets)
    with pytest.raises(PersistenceFailure) as exc_info:
        db.insert_episode_with_assets(episode, assets)
    assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)
    assert db.count_assets() == 2


def test_asset_failure_leaves_no_episode_row(db: CrawlDB) -> None:
    episode, assets = _episode(2, images=2)
    # image_seq dupliqué : la 2e insertion d'image échoue, l'épisode ne doit pas rester
    assets[1] = AssetRecord(Provider.NAVER, "sample", 2, 1, b"dup", TS)
    with pytest.raises(PersistenceFailure):
        db.insert_episode_with_assets(episode, assets)
    assert not db.exists(Provider.NAVER, "sample", 2)
    assert db.count_assets() == 0


def test_insert_rejects_empty_or_mismatched_assets(db: CrawlDB) -> None:
    episode, assets = _episode(1)
    with pytest.raises(PersistenceFailure):
        db.insert_episode_with_assets(episode, [])
    other = AssetRecord(Provider.NAVER, "other", 1, 1, b"x", TS)
    with pytest.raises(PersistenceFailure):
        db.insert_episode_with_assets(episode, [other])
    assert db.count_episodes() == 0


def test_list_episodes_ordered(db: CrawlDB) -> None:
    for seq in (3, 1, 2):
        db.insert_episode_with_assets(*_episode(seq, images=1))
    assert [e.seq for e in db.list_episodes(Provider.NAVER, "sample")] == [1, 2, 3]
    assert db.count_episodes(Provider.LEZHIN) == 0


def test_write_error_maps_to_persistence_failure(tmp_path: Path) -> None:
    db = CrawlDB(tmp_path / "not_initialized.sqlite")
    with pytest.raises(PersistenceFailure):
        db.update_target_attempt(Provider.NAVER, "123", TS)
    with pytest.raises(PersistenceFailure):
        db.upsert_title(Provider.NAVER, "123", "T")


def test_exists_read_error_maps_to_persistence_failure(tmp_path: Path) -> None:
    db = CrawlDB(tmp_path / "not_initialized.sqlite")
    with pytest.raises(PersistenceFailure) as exc_info:
        db.exists(Provider.NAVER, "sample", 1)
    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
