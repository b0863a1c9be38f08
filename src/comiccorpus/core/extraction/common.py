"""Briques d'extraction communes : soup HTML, scripts inline, objet JSON borné par marqueurs."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator

from bs4 import BeautifulSoup

from comiccorpus.core.errors import ExtractionFailure

logger = logging.getLogger(__name__)


def make_soup(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except Exception as e:
        logger.debug("lxml non disponible, fallback html.parser: %s", e)
        return BeautifulSoup(html, "html.parser")


def find_inline_scripts(html: str | BeautifulSoup) -> Iterator[str]:
    """Textes des balises <script> sans attribut id ni src, dans l'ordre du document."""
    soup = make_soup(html) if isinstance(html, str) else html
    for tag in soup.find_all("script"):
        if tag.has_attr("id") or tag.has_attr("src"):
            continue
        text = tag.string if tag.string is not None else tag.get_text()
        if text:
            yield text


def slice_between(text: str, start_marker: str, end_marker: str) -> str | None:
    """
    Retourne le texte entre la première occurrence de start_marker et la première
    occurrence de end_marker qui la suit ; None si l'un des deux manque.
    """
    start = text.find(start_marker)
    if start < 0:
        return None
    start += len(start_marker)
    end = text.find(end_marker, start)
    if end < 0:
        return None
    return text[start:end]


def parse_json_fragment(fragment: str, *, what: str) -> Any:
    """Parse un fragment JSON découpé dans un script (virgule / blancs finaux tolérés)."""
    cleaned = fragment.strip().rstrip(",").rstrip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionFailure(f"{what}: JSON invalide ({e.msg}, position {e.pos})") from e


def extract_embedded_json(
    html: str | BeautifulSoup,
    start_marker: str,
    end_marker: str,
    *,
    scope_marker: str | None = None,
    scope_end_marker: str | None = None,
) -> Any:
    """
    Extrait le premier objet JSON embarqué dans un script inline.

    Chaque candidat (script sans id ni src) est d'abord restreint à la portée
    [scope_marker, scope_end_marker) si fournie, puis l'objet est cherché entre
    start_marker et end_marker. Le premier candidat qui satisfait les deux
    marqueurs est parsé.

    Raises:
        ExtractionFailure: Aucun candidat ne contient les deux marqueurs, ou JSON invalide.
    """
    for text in find_inline_scripts(html):
        scope = text
        if scope_marker is not None:
            begin = text.find(scope_marker)
            if begin < 0:
                continue
            scope = text[begin + len(scope_marker) :]
            if scope_end_marker is not None:
                end = scope.find(scope_end_marker)
                if end >= 0:
                    scope = scope[:end]
        fragment = slice_between(scope, start_marker, end_marker)
        if fragment is None:
            if scope_marker is not None:
                logger.warning(
                    "Found %s object, but %r/%r markers do not exist", scope_marker.strip(), start_marker, end_marker
                )
            continue
        return parse_json_fragment(fragment, what=scope_marker.strip() if scope_marker else start_marker.strip())
    raise ExtractionFailure(
        f"Aucun script inline ne contient les marqueurs {start_marker!r} ... {end_marker!r}",
        selector_used="script:not([id]):not([src])",
    )
