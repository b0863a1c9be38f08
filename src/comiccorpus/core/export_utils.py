"""Export des comics ingérés en archives CBZ (zip non compressé, une archive par titre)."""

from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path

from comiccorpus.core.models import TitleRecord
from comiccorpus.core.storage.db import CrawlDB

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def safe_name(text: str) -> str:
    """Nom utilisable comme chemin : séparateurs et caractères réservés remplacés par '_'."""
    cleaned = _UNSAFE_CHARS.sub("_", text).strip().strip(".")
    return cleaned or "_"


def cbz_filename(record: TitleRecord) -> str:
    return f"{record.provider.value}-{safe_name(record.title or record.external_id)}.cbz"


def export_title_cbz(db: CrawlDB, record: TitleRecord, path: Path) -> int:
    """
    Écrit l'archive d'un titre : entrées <provider>/<titre>/<épisode>/<image>.jpg
    dans l'ordre épisode puis image. Retourne le nombre d'images écrites.
    """
    folder = safe_name(record.title or record.external_id)
    written = 0
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as archive:
        for episode in db.list_episodes(record.provider, record.external_id):
            for asset in db.get_assets(record.provider, record.external_id, episode.seq):
                name = f"{record.provider.value}/{folder}/{episode.seq}/{asset.image_seq}.jpg"
                archive.writestr(name, asset.data)
                written += 1
    return written


def export_cbz(db: CrawlDB, out_dir: Path) -> int:
    """Une archive .cbz par titre ayant au moins un épisode ; retourne le nombre d'archives."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    archives = 0
    for record in db.list_titles():
        if not db.count_episodes(record.provider, record.external_id):
            logger.debug("No episode for %s/%s, skipped", record.provider, record.external_id)
            continue
        path = out_dir / cbz_filename(record)
        images = export_title_cbz(db, record, path)
        logger.info("Exported %s (%d image(s))", path.name, images)
        archives += 1
    return archives
