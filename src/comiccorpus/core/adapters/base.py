"""Interface des adapters provider + registre."""

from __future__ import annotations

from typing import Protocol

from comiccorpus.core.models import (
    Credentials,
    EpisodeAssets,
    EpisodeDescriptor,
    EpisodeListing,
    Provider,
)
from comiccorpus.core.utils.http import HttpSession


class ProviderAdapter(Protocol):
    """Protocol pour un adapteur éditeur (authenticate, list, fetch assets, fetch title)."""

    provider: Provider
    requires_login: bool

    def authenticate(self, http: HttpSession, credentials: Credentials | None) -> HttpSession:
        """
        Déroule le login de l'éditeur sur la session et la retourne.

        Raises:
            AuthenticationFailure: Réponse n'indiquant pas un login réussi.
        """
        ...

    def list_episodes(self, session: HttpSession, external_id: str) -> EpisodeListing:
        """
        Titre du comic + descripteurs d'épisodes en ordre croissant.

        Raises:
            ExtractionFailure, NetworkFailure
        """
        ...

    def fetch_episode_assets(
        self, session: HttpSession, external_id: str, descriptor: EpisodeDescriptor
    ) -> EpisodeAssets:
        """Images de l'épisode dans l'ordre de livraison."""
        ...

    def fetch_title(self, session: HttpSession, external_id: str) -> str | None:
        """Lookup léger du titre seul (backfill sans crawl complet)."""
        ...


class AdapterRegistry:
    """Registre des adapters disponibles (un par Provider)."""

    _adapters: dict[Provider, ProviderAdapter] = {}

    @classmethod
    def register(cls, adapter: ProviderAdapter) -> None:
        cls._adapters[adapter.provider] = adapter

    @classmethod
    def get(cls, provider: Provider) -> ProviderAdapter | None:
        """Retourne l'adapteur correspondant ou None si non trouvé."""
        return cls._adapters.get(provider)

    @classmethod
    def get_or_raise(cls, provider: Provider) -> ProviderAdapter:
        """Retourne l'adapteur correspondant ou lève une exception claire."""
        adapter = cls._adapters.get(provider)
        if not adapter:
            available = ", ".join(p.value for p in cls._adapters) if cls._adapters else "(aucun)"
            raise ValueError(
                f"Adapteur '{provider}' introuvable. Adapteurs disponibles : {available}"
            )
        return adapter

    @classmethod
    def list_providers(cls) -> list[Provider]:
        return list(cls._adapters.keys())
