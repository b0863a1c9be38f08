"""Taxonomie des erreurs du crawl (authentification, extraction, réseau, persistance)."""

from __future__ import annotations


class CrawlError(Exception):
    """Erreur de base du moteur de crawl ; porte le contexte provider / comic si connu."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        external_id: str | None = None,
    ):
        self.provider = provider
        self.external_id = external_id
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.provider and self.external_id:
            return f"[{self.provider}/{self.external_id}] {base}"
        if self.provider:
            return f"[{self.provider}] {base}"
        return base


class AuthenticationFailure(CrawlError):
    """Login refusé ou signal de confirmation absent : toutes les cibles du provider sont abandonnées."""


class ExtractionFailure(CrawlError):
    """Structure HTML/JSON attendue absente ou invalide."""

    def __init__(self, message: str, *, selector_used: str | None = None, **kwargs):
        self.selector_used = selector_used
        super().__init__(message, **kwargs)


class NetworkFailure(CrawlError):
    """Erreur de transport ou statut HTTP non 2xx."""

    def __init__(self, message: str, *, status_code: int | None = None, url: str | None = None, **kwargs):
        self.status_code = status_code
        self.url = url
        super().__init__(message, **kwargs)


class PersistenceFailure(CrawlError):
    """Écriture refusée par la base (contrainte, I/O, verrou)."""
