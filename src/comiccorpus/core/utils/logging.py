"""Configuration du logging pour la CLI de crawl."""

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure le logging racine et retourne le logger du package.

    Args:
        level: Niveau de log (DEBUG, INFO, WARNING, ERROR).
        log_file: Fichier où écrire les logs (optionnel).
        format_string: Format des messages (optionnel).

    Returns:
        Logger 'comiccorpus'.
    """
    if format_string is None:
        format_string = DEFAULT_FORMAT

    formatter = logging.Formatter(format_string)
    root = logging.getLogger()
    root.setLevel(level)

    # Éviter double handlers si rappel
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # httpx logge chaque requête en INFO : trop bavard pour un crawl image par image
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    logger = logging.getLogger("comiccorpus")
    logger.setLevel(level)
    return logger


def parse_level(name: str | int | None) -> int:
    """Résout un niveau de log depuis son nom ('debug', 'INFO'...) ; INFO par défaut."""
    if isinstance(name, int):
        return name
    value = logging.getLevelName((name or "INFO").strip().upper())
    return value if isinstance(value, int) else logging.INFO
