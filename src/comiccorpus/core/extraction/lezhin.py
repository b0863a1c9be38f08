"""
Extraction Lezhin : objet __LZ_PRODUCT__ embarqué dans la page comic, jeton du
formulaire de login, réponse JSON de l'API viewer.

Forme attendue de la page comic (script inline sans id ni src) :

    __LZ_PRODUCT__ = {
        product: {"id": ..., "alias": "...", "display": {"title": "..."}, "episodes": [...]},
        departure: '...',
        ...
    };
    __LZ_DATA__ = {...};

Les épisodes du produit sont listés du plus récent au plus ancien.
"""

from __future__ import annotations

import logging
from typing import Any

from comiccorpus.core.errors import ExtractionFailure
from comiccorpus.core.extraction.common import extract_embedded_json, make_soup
from comiccorpus.core.models import EpisodeDescriptor, EpisodeKind, EpisodeListing
from comiccorpus.core.utils.text import clean_title
from comiccorpus.core.utils.timestamps import from_epoch_ms

logger = logging.getLogger(__name__)

LZ_PRODUCT_MARKER = "__LZ_PRODUCT__ = "
LZ_DATA_MARKER = "__LZ_DATA__"
PRODUCT_START_MARKER = "product: "
PRODUCT_END_MARKER = "departure:"

# display.type : n (notice), g (général), p (prologue), e (épilogue)
NOTICE_TYPE = "n"


def extract_product(html: str) -> dict[str, Any]:
    """Retourne l'objet JSON __LZ_PRODUCT__.product de la page comic."""
    product = extract_embedded_json(
        html,
        PRODUCT_START_MARKER,
        PRODUCT_END_MARKER,
        scope_marker=LZ_PRODUCT_MARKER,
        scope_end_marker=LZ_DATA_MARKER,
    )
    if not isinstance(product, dict):
        raise ExtractionFailure("__LZ_PRODUCT__.product n'est pas un objet JSON")
    return product


def _optional_text(obj: dict[str, Any], key: str, where: str) -> str | None:
    """Valeur texte facultative : None si absente, ExtractionFailure si d'un autre type."""
    value = obj.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ExtractionFailure(f"{where}.{key} : chaîne attendue, reçu {type(value).__name__}")


def _episode_display(raw: dict[str, Any]) -> dict[str, Any]:
    display = raw.get("display")
    if display is None:
        return {}
    if not isinstance(display, dict):
        raise ExtractionFailure(f"display de l'épisode {raw.get('name')!r} : objet attendu")
    return display


def product_title(product: dict[str, Any]) -> str | None:
    display = product.get("display")
    if not isinstance(display, dict):
        raise ExtractionFailure("__LZ_PRODUCT__.product.display manquant")
    return clean_title(_optional_text(display, "title", "product.display"))


def _episode_title(raw: dict[str, Any]) -> str | None:
    display = _episode_display(raw)
    name = raw.get("name")
    return clean_title(
        _optional_text(display, "title", "episode.display")
        or _optional_text(display, "displayName", "episode.display")
        or (str(name) if name is not None else None)
    )


def parse_product(product: dict[str, Any]) -> EpisodeListing:
    """
    Convertit le produit en EpisodeListing en ordre croissant.

    Les notices (display.type == "n", ou type absent) ne consomment pas de séquence ;
    les épisodes de contenu reçoivent seq = 1..N dans l'ordre croissant, y compris
    ceux encore sous embargo, pour que la numérotation reste stable d'un run à l'autre.
    """
    title = product_title(product)
    raw_episodes = product.get("episodes")
    if not isinstance(raw_episodes, list):
        raise ExtractionFailure("__LZ_PRODUCT__.product.episodes manquant ou invalide")

    episodes: list[EpisodeDescriptor] = []
    seq = 0
    # Le produit liste les épisodes récents en premier
    for raw in reversed(raw_episodes):
        if not isinstance(raw, dict) or "name" not in raw:
            raise ExtractionFailure(f"Épisode Lezhin sans nom : {raw!r:.80}")
        name = _episode_title(raw)
        ep_type = _optional_text(_episode_display(raw), "type", "episode.display")
        try:
            available_at = from_epoch_ms(raw.get("freedAt"))
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise ExtractionFailure(f"freedAt invalide pour l'épisode {raw.get('name')!r}") from e

        if ep_type == NOTICE_TYPE or ep_type is None:
            if ep_type is None:
                logger.warning('Expected string for display["type"] in episode %s', name)
            episodes.append(
                EpisodeDescriptor(
                    seq=None,
                    native_id=str(raw["name"]),
                    name=name,
                    available_at=available_at,
                    kind=EpisodeKind.NOTICE,
                )
            )
            continue

        seq += 1
        episodes.append(
            EpisodeDescriptor(
                seq=seq,
                native_id=str(raw["name"]),
                name=name,
                available_at=available_at,
            )
        )
    return EpisodeListing(title=title, episodes=episodes)


def extract_authenticity_token(html: str) -> str:
    """Jeton anti-forgery du formulaire de login (input name=authenticity_token)."""
    soup = make_soup(html)
    field = soup.select_one("input[name='authenticity_token']")
    if field is None:
        raise ExtractionFailure(
            "Expected an authenticity_token field on login form",
            selector_used="input[name='authenticity_token']",
        )
    value = (field.get("value") or "").strip()
    if not value:
        raise ExtractionFailure("authenticity_token field must have a value")
    return value


def parse_viewer_payload(payload: Any) -> list[str]:
    """
    Chemins d'images (ordre de livraison) depuis la réponse de l'API comic_viewer_k.

    Forme : {"code": 0, "data": {"extra": {"episode": {"scrollsInfo": [{"path": "..."}]}}}}
    """
    if not isinstance(payload, dict):
        raise ExtractionFailure("Réponse API viewer : objet JSON attendu")
    code = payload.get("code")
    if not isinstance(code, int):
        raise ExtractionFailure("Expected integer code for API response")
    if code != 0:
        raise ExtractionFailure(f"Lezhin API returned non-zero code {code}")
    try:
        items = payload["data"]["extra"]["episode"]["scrollsInfo"]
    except (KeyError, TypeError) as e:
        raise ExtractionFailure("Réponse API viewer sans data.extra.episode.scrollsInfo") from e
    if not isinstance(items, list):
        raise ExtractionFailure("Expected list of image items")
    paths: list[str] = []
    for entry in items:
        path = entry.get("path") if isinstance(entry, dict) else None
        if not isinstance(path, str) or not path:
            raise ExtractionFailure("Expected string path for image item")
        paths.append(path)
    return paths
