"""Ligne de commande : setup, registre de cibles, crawl, titres manquants, export CBZ."""

from __future__ import annotations

import argparse
import logging
import sqlite3
from pathlib import Path

from comiccorpus import __version__
from comiccorpus.core.config import (
    CrawlConfig,
    default_config_path,
    load_config,
    load_credentials,
    save_config,
)
from comiccorpus.core.crawl import CrawlContext, backfill_titles, run_crawl
from comiccorpus.core.errors import CrawlError
from comiccorpus.core.export_utils import export_cbz
from comiccorpus.core.models import Provider, TargetStatus
from comiccorpus.core.storage import CrawlDB
from comiccorpus.core.utils.logging import parse_level, setup_logging

logger = logging.getLogger("comiccorpus.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="comiccorpus",
        description="Crawler incrémental de webtoons (Lezhin, Naver) vers SQLite.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="Fichier TOML de configuration")
    parser.add_argument("--db", type=Path, default=None, help="Base SQLite (remplace db_path)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logs DEBUG")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("setup", help="Crée la base et un fichier de configuration par défaut")

    targets = sub.add_parser("targets", help="Registre des cibles")
    targets_sub = targets.add_subparsers(dest="targets_command", required=True)
    add = targets_sub.add_parser("add", help="Ajoute une cible")
    add.add_argument("provider", choices=[p.value for p in Provider])
    add.add_argument("external_id")
    add.add_argument("--status", default="enabled", choices=[s.name.lower() for s in TargetStatus])
    targets_sub.add_parser("list", help="Liste les cibles")
    status = targets_sub.add_parser("status", help="Change le statut d'une cible")
    status.add_argument("provider", choices=[p.value for p in Provider])
    status.add_argument("external_id")
    status.add_argument("status", choices=[s.name.lower() for s in TargetStatus])

    crawl = sub.add_parser("crawl", help="Crawl de toutes les cibles actives")
    crawl.add_argument("--credential", type=Path, default=None, help="Fichier identifiant/mot de passe")

    titles = sub.add_parser("titles", help="Récupère les titres manquants")
    titles.add_argument("--credential", type=Path, default=None, help="Fichier identifiant/mot de passe")
    titles.add_argument("--provider", action="append", choices=[p.value for p in Provider])

    export = sub.add_parser("export", help="Exporte chaque titre en archive .cbz")
    export.add_argument("out_dir", type=Path)
    return parser


def _cmd_setup(args: argparse.Namespace, config: CrawlConfig, db: CrawlDB) -> int:
    db.init()
    logger.info("Database ready: %s (schema v%d)", db.db_path, db.get_schema_version())
    config_path = args.config or default_config_path()
    if not config_path.exists():
        save_config(config_path, config)
        logger.info("Default configuration written to %s", config_path)
    return 0


def _cmd_targets(args: argparse.Namespace, db: CrawlDB) -> int:
    if args.targets_command == "add":
        db.add_target(Provider.parse(args.provider), args.external_id, TargetStatus.parse(args.status))
        logger.info("Target %s/%s added", args.provider, args.external_id)
        return 0
    if args.targets_command == "status":
        changed = db.set_target_status(
            Provider.parse(args.provider), args.external_id, TargetStatus.parse(args.status)
        )
        if not changed:
            logger.error("Unknown target %s/%s", args.provider, args.external_id)
            return 1
        return 0
    for target in db.load_targets():
        print(
            f"{target.provider.value}\t{target.external_id}\t"
            f"{target.status.name.lower()}\t{target.last_attempt or '-'}"
        )
    return 0


def _cmd_crawl(args: argparse.Namespace, config: CrawlConfig, db: CrawlDB) -> int:
    credentials = load_credentials(args.credential) if args.credential else None
    context = CrawlContext(db=db, config=config, credentials=credentials)
    report = run_crawl(context)
    for result in report.targets:
        if result.skipped:
            continue
        state = "ok" if result.success else "failed"
        print(f"{result.provider.value}\t{result.external_id}\t{state}\t{result.message}")
    attempted = {t.provider for t in report.targets if not t.skipped}
    if attempted and attempted <= report.failed_providers:
        logger.error("Authentication failed for every provider")
        return 1
    return 0


def _cmd_titles(args: argparse.Namespace, config: CrawlConfig, db: CrawlDB) -> int:
    credentials = load_credentials(args.credential) if args.credential else None
    context = CrawlContext(db=db, config=config, credentials=credentials)
    providers = [Provider.parse(p) for p in args.provider] if args.provider else None
    updated = backfill_titles(context, providers)
    print(f"{updated} title(s) updated")
    return 0


def _cmd_export(args: argparse.Namespace, db: CrawlDB) -> int:
    count = export_cbz(db, args.out_dir)
    print(f"{count} archive(s) written to {args.out_dir}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args.config, db_path=args.db)
    except (OSError, ValueError) as e:
        setup_logging()
        logger.error("Invalid configuration: %s", e)
        return 1
    level = parse_level("DEBUG" if args.verbose else config.log_level)
    setup_logging(level=level, log_file=config.log_file)

    db = CrawlDB(config.db_path)
    try:
        if args.command == "setup":
            return _cmd_setup(args, config, db)
        # Les autres commandes supposent une base initialisée (init idempotent)
        db.init()
        if args.command == "targets":
            return _cmd_targets(args, db)
        if args.command == "crawl":
            return _cmd_crawl(args, config, db)
        if args.command == "titles":
            return _cmd_titles(args, config, db)
        if args.command == "export":
            return _cmd_export(args, db)
    except (CrawlError, ValueError, OSError, sqlite3.Error) as e:
        logger.error("%s", e)
        return 1
    parser.error(f"commande inconnue : {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
