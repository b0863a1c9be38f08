"""Configuration du crawl (TOML) et lecture du fichier d'identifiants."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from comiccorpus.core.models import Credentials
from comiccorpus.core.utils.http import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "comiccorpus.sqlite"
DEFAULT_CONFIG_NAME = "comiccorpus.toml"


def default_db_path() -> Path:
    return Path.home() / DEFAULT_DATABASE_NAME


def default_config_path() -> Path:
    return Path.home() / ".config" / DEFAULT_CONFIG_NAME


@dataclass(frozen=True)
class CrawlConfig:
    """Configuration d'un run de crawl."""

    db_path: Path
    """Chemin de la base SQLite."""
    user_agent: str = DEFAULT_USER_AGENT
    """User-Agent pour les requêtes HTTP."""
    rate_limit_s: float = 1.0
    """Délai minimal entre requêtes HTTP (secondes)."""
    timeout_s: float = 30.0
    """Timeout HTTP (secondes)."""
    log_level: str = "INFO"
    log_file: Path | None = None


_PATH_KEYS = {"db_path", "log_file"}
_FLOAT_KEYS = {"rate_limit_s", "timeout_s"}
_STR_KEYS = {"user_agent", "log_level"}


def read_toml(path: Path) -> dict[str, Any]:
    """Lit un fichier TOML (stdlib tomllib)."""
    with open(path, "rb") as file_obj:
        return tomllib.load(file_obj)


def write_toml(path: Path, data: dict[str, Any]) -> None:
    """Écrit un fichier TOML plat (écriture manuelle pour éviter une dépendance)."""
    lines: list[str] = []
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, Path):
            value = str(value)
        if isinstance(value, str):
            escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
            lines.append(f'{key} = "{escaped}"')
        elif isinstance(value, bool):
            lines.append(f"{key} = {str(value).lower()}")
        elif isinstance(value, (int, float)):
            lines.append(f"{key} = {value}")
        else:
            lines.append(f'{key} = "{value!s}"')
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def config_from_dict(data: dict[str, Any], base: CrawlConfig | None = None) -> CrawlConfig:
    """
    Construit une CrawlConfig depuis un dict TOML ; clés inconnues ignorées (warning).

    Raises:
        ValueError: Valeur de type incorrect.
    """
    config = base or CrawlConfig(db_path=default_db_path())
    known = {f.name for f in fields(CrawlConfig)}
    updates: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Clé de configuration inconnue ignorée : %s", key)
            continue
        if key in _PATH_KEYS:
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{key} : chemin (chaîne non vide) attendu")
            updates[key] = Path(value).expanduser()
        elif key in _FLOAT_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{key} : nombre attendu")
            if value < 0:
                raise ValueError(f"{key} : valeur positive attendue")
            updates[key] = float(value)
        elif key in _STR_KEYS:
            if not isinstance(value, str):
                raise ValueError(f"{key} : chaîne attendue")
            updates[key] = value
    return replace(config, **updates)


def load_config(path: Path | None = None, *, db_path: Path | None = None) -> CrawlConfig:
    """
    Charge la configuration : valeurs par défaut, puis fichier TOML s'il existe,
    puis db_path explicite (CLI) en dernier.
    """
    config = CrawlConfig(db_path=default_db_path())
    path = path or default_config_path()
    if path.exists():
        config = config_from_dict(read_toml(path), config)
        logger.debug("Configuration chargée depuis %s", path)
    if db_path is not None:
        config = replace(config, db_path=Path(db_path))
    return config


def save_config(path: Path, config: CrawlConfig) -> None:
    write_toml(path, {f.name: getattr(config, f.name) for f in fields(CrawlConfig)})


def load_credentials(path: Path) -> Credentials:
    """
    Fichier d'identifiants : première ligne = identifiant, deuxième = mot de passe.
    Le mot de passe est pris tel quel (seul le saut de ligne est retiré).
    """
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    if len(lines) < 2 or not lines[0].strip() or not lines[1]:
        raise ValueError(f"Fichier d'identifiants invalide (2 lignes attendues) : {path}")
    return Credentials(username=lines[0].strip(), password=lines[1])
