"""SQLite : registre de cibles, titres, épisodes et images (passerelle de persistance du crawl)."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from comiccorpus.core.errors import PersistenceFailure
from comiccorpus.core.models import (
    AssetRecord,
    EpisodeRecord,
    Provider,
    Target,
    TargetStatus,
    TitleRecord,
)

logger = logging.getLogger(__name__)

# Schéma DDL
STORAGE_DIR = Path(__file__).parent
SCHEMA_SQL = (STORAGE_DIR / "schema.sql").read_text(encoding="utf-8")
SCHEMA_VERSION = 1


def _target_from_row(row: sqlite3.Row) -> Target:
    return Target(
        provider=Provider.parse(row["provider"]),
        external_id=row["id"],
        status=TargetStatus(int(row["status"])),
        last_attempt=row["last_scraping"],
    )


def _episode_from_row(row: sqlite3.Row) -> EpisodeRecord:
    return EpisodeRecord(
        provider=Provider.parse(row["provider"]),
        comic_id=row["id"],
        seq=int(row["seq"]),
        title=row["title"],
        image_count=int(row["images_count"]),
        created_at=row["created_at"],
        last_update=row["last_update"],
    )


class CrawlDB:
    """
    Accès à la base du crawl. Une connexion par appel ; les écritures d'un épisode
    et de ses images partagent une seule transaction.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init(self) -> None:
        """Crée les tables si nécessaire et enregistre la version de schéma."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._conn()
        try:
            conn.executescript(SCHEMA_SQL)
            row = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()
            if not row[0]:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
            conn.commit()
        finally:
            conn.close()

    def get_schema_version(self) -> int:
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            ).fetchone()
            return int(row[0]) if row else 0
        finally:
            conn.close()

    # ----- Registre des cibles -----

    def add_target(
        self,
        provider: Provider,
        external_id: str,
        status: TargetStatus = TargetStatus.ENABLED,
    ) -> None:
        """Ajoute une cible (ou met à jour son statut si elle existe déjà)."""
        conn = self._conn()
        try:
            conn.execute(
                """
                INSERT INTO scraping_targets (provider, id, status, last_scraping)
                VALUES (?, ?, ?, NULL)
                ON CONFLICT(provider, id) DO UPDATE SET status=excluded.status
                """,
                (provider.value, external_id, int(status)),
            )
            conn.commit()
        finally:
            conn.close()

    def set_target_status(self, provider: Provider, external_id: str, status: TargetStatus) -> bool:
        """Change le statut d'une cible ; False si la cible n'existe pas."""
        conn = self._conn()
        try:
            cur = conn.execute(
                "UPDATE scraping_targets SET status=? WHERE provider=? AND id=?",
                (int(status), provider.value, external_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def load_targets(self) -> list[Target]:
        """Toutes les cibles dans l'ordre du registre (ordre d'insertion)."""
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT provider, id, status, last_scraping FROM scraping_targets ORDER BY rowid"
            ).fetchall()
            return [_target_from_row(r) for r in rows]
        finally:
            conn.close()

    def load_enabled_targets(self) -> list[Target]:
        return [t for t in self.load_targets() if t.status == TargetStatus.ENABLED]

    def update_target_attempt(self, provider: Provider, external_id: str, timestamp: str) -> None:
        conn = self._conn()
        try:
            conn.execute(
                "UPDATE scraping_targets SET last_scraping=? WHERE provider=? AND id=?",
                (timestamp, provider.value, external_id),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Mise à jour de last_scraping impossible : {e}",
                provider=provider.value,
                external_id=external_id,
            ) from e
        finally:
            conn.close()

    # ----- Titres -----

    def upsert_title(self, provider: Provider, external_id: str, title: str | None) -> None:
        """
        Insère le titre s'il est absent ; un titre non nul remplace la valeur stockée,
        un titre nul n'efface jamais une valeur existante.
        """
        conn = self._conn()
        try:
            conn.execute(
                """
                INSERT INTO titles (provider, id, title) VALUES (?, ?, ?)
                ON CONFLICT(provider, id) DO UPDATE SET
                  title=COALESCE(excluded.title, titles.title)
                """,
                (provider.value, external_id, title),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Écriture du titre impossible : {e}", provider=provider.value, external_id=external_id
            ) from e
        finally:
            conn.close()

    def get_title(self, provider: Provider, external_id: str) -> TitleRecord | None:
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT provider, id, title FROM titles WHERE provider=? AND id=?",
                (provider.value, external_id),
            ).fetchone()
            if row is None:
                return None
            return TitleRecord(provider=provider, external_id=row["id"], title=row["title"])
        finally:
            conn.close()

    def list_titles(self) -> list[TitleRecord]:
        conn = self._conn()
        try:
            rows = conn.execute("SELECT provider, id, title FROM titles ORDER BY provider, id").fetchall()
            return [
                TitleRecord(provider=Provider.parse(r["provider"]), external_id=r["id"], title=r["title"])
                for r in rows
            ]
        finally:
            conn.close()

    def get_titles_missing(self, provider: Provider) -> list[str]:
        """Identifiants des comics dont le titre est encore NULL."""
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT id FROM titles WHERE provider=? AND title IS NULL ORDER BY rowid",
                (provider.value,),
            ).fetchall()
            return [r[0] for r in rows]
        finally:
            conn.close()

    # ----- Épisodes + images -----

    def exists(self, provider: Provider, comic_id: str, episode_seq: int) -> bool:
        """
        True si l'épisode (provider, comic_id, seq) est déjà ingéré.

        Raises:
            PersistenceFailure: Lecture impossible (verrou, I/O, schéma absent).
        """
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT 1 FROM episodes WHERE provider=? AND id=? AND seq=?",
                (provider.value, comic_id, episode_seq),
            ).fetchone()
            return row is not None
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Lecture de l'épisode {episode_seq} impossible : {e}",
                provider=provider.value,
                external_id=comic_id,
            ) from e
        finally:
            conn.close()

    def insert_episode_with_assets(self, episode: EpisodeRecord, assets: list[AssetRecord]) -> None:
        """
        Insère l'épisode et toutes ses images dans une seule transaction.

        Raises:
            PersistenceFailure: Liste d'images vide ou incohérente, ou erreur SQLite
                (rollback : rien n'est écrit).
        """
        context = {"provider": episode.provider.value, "external_id": episode.comic_id}
        if not assets:
            raise PersistenceFailure(f"Épisode {episode.seq} sans image : rien à écrire", **context)
        key = (episode.provider, episode.comic_id, episode.seq)
        if any((a.provider, a.comic_id, a.episode_seq) != key for a in assets):
            raise PersistenceFailure(f"Images ne correspondant pas à l'épisode {episode.seq}", **context)

        conn = self._conn()
        try:
            conn.execute(
                """
                INSERT INTO episodes (provider, id, seq, title, images_count, created_at, last_update)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    episode.provider.value,
                    episode.comic_id,
                    episode.seq,
                    episode.title,
                    episode.image_count,
                    episode.created_at,
                    episode.last_update,
                ),
            )
            conn.executemany(
                """
                INSERT INTO assets (provider, comic_id, episode_seq, image_seq, image, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (a.provider.value, a.comic_id, a.episode_seq, a.image_seq, a.data, a.updated_at)
                    for a in assets
                ],
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceFailure(
                f"Cannot insert episode {episode.seq} into database: {e}", **context
            ) from e
        finally:
            conn.close()

    def get_episode(self, provider: Provider, comic_id: str, seq: int) -> EpisodeRecord | None:
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT * FROM episodes WHERE provider=? AND id=? AND seq=?",
                (provider.value, comic_id, seq),
            ).fetchone()
            return _episode_from_row(row) if row else None
        finally:
            conn.close()

    def list_episodes(self, provider: Provider, comic_id: str) -> list[EpisodeRecord]:
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT * FROM episodes WHERE provider=? AND id=? ORDER BY seq",
                (provider.value, comic_id),
            ).fetchall()
            return [_episode_from_row(r) for r in rows]
        finally:
            conn.close()

    def get_assets(self, provider: Provider, comic_id: str, episode_seq: int) -> list[AssetRecord]:
        """Images d'un épisode triées par image_seq."""
        conn = self._conn()
        try:
            rows = conn.execute(
                """
                SELECT provider, comic_id, episode_seq, image_seq, image, updated_at
                FROM assets WHERE provider=? AND comic_id=? AND episode_seq=?
                ORDER BY image_seq
                """,
                (provider.value, comic_id, episode_seq),
            ).fetchall()
            return [
                AssetRecord(
                    provider=provider,
                    comic_id=r["comic_id"],
                    episode_seq=int(r["episode_seq"]),
                    image_seq=int(r["image_seq"]),
                    data=bytes(r["image"]),
                    updated_at=r["updated_at"],
                )
                for r in rows
            ]
        finally:
            conn.close()

    def count_episodes(self, provider: Provider | None = None, comic_id: str | None = None) -> int:
        return self._count("episodes", "id", provider, comic_id)

    def count_assets(self, provider: Provider | None = None, comic_id: str | None = None) -> int:
        return self._count("assets", "comic_id", provider, comic_id)

    def _count(self, table: str, id_column: str, provider: Provider | None, comic_id: str | None) -> int:
        where = []
        params: list = []
        if provider is not None:
            where.append("provider = ?")
            params.append(provider.value)
        if comic_id is not None:
            where.append(f"{id_column} = ?")
            params.append(comic_id)
        sql = f"SELECT COUNT(*) FROM {table}"
        if where:
            sql += " WHERE " + " AND ".join(where)
        conn = self._conn()
        try:
            return int(conn.execute(sql, params).fetchone()[0])
        finally:
            conn.close()
