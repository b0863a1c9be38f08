"""Utilitaires texte."""

from __future__ import annotations


def normalize_whitespace(text: str) -> str:
    """Remplace les séquences d'espaces/blancs par un seul espace."""
    return " ".join(text.split())


def clean_title(text: str | None, max_len: int = 200) -> str | None:
    """Titre affichable : espaces normalisés, tronqué ; None si vide."""
    if text is None:
        return None
    t = normalize_whitespace(text)
    if not t:
        return None
    if len(t) > max_len:
        t = t[: max_len - 3] + "..."
    return t
