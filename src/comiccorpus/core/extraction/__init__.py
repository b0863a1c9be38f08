"""Couche d'extraction : fonctions pures (HTML/JSON → descripteurs typés), sans réseau ni base."""

from comiccorpus.core.extraction.common import extract_embedded_json, find_inline_scripts, make_soup
from comiccorpus.core.extraction.naver import episode_scan_range, parse_episode_list_page, parse_episode_page
from comiccorpus.core.extraction.lezhin import extract_product, parse_product, parse_viewer_payload

__all__ = [
    "episode_scan_range",
    "extract_embedded_json",
    "extract_product",
    "find_inline_scripts",
    "make_soup",
    "parse_episode_list_page",
    "parse_episode_page",
    "parse_product",
    "parse_viewer_payload",
]
