"""Contexte explicite d'un run : base, configuration, identifiants, sessions par provider, horloge."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping

from comiccorpus.core.adapters import AdapterRegistry, ProviderAdapter
from comiccorpus.core.config import CrawlConfig
from comiccorpus.core.models import Credentials, Provider
from comiccorpus.core.storage.db import CrawlDB
from comiccorpus.core.utils.http import HttpSession
from comiccorpus.core.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Provider], HttpSession]


@dataclass
class CrawlContext:
    """
    Contexte passé à l'orchestrateur et au backfill des titres.

    Champs requis :
        db : passerelle de persistance (CrawlDB).

    Champs optionnels :
        config : configuration HTTP (user agent, rate limit, timeout) ; défauts si absente.
        credentials : identifiants pour les providers qui exigent un login.
        sessions : sessions authentifiées du run (provider → session), remplies par l'orchestrateur.
        session_factory : fabrique de sessions (injectée par les tests, ex. httpx.MockTransport).
        clock : horloge UTC (instant "now" du run, horodatages d'écriture).
        adapters : surcharge du registre d'adapters (provider → adapteur).
    """

    db: CrawlDB
    config: CrawlConfig | None = None
    credentials: Credentials | None = None
    sessions: dict[Provider, HttpSession] = field(default_factory=dict)
    session_factory: SessionFactory | None = None
    clock: Callable[[], datetime.datetime] = utc_now
    adapters: Mapping[Provider, ProviderAdapter] | None = None

    def adapter_for(self, provider: Provider) -> ProviderAdapter:
        if self.adapters is not None and provider in self.adapters:
            return self.adapters[provider]
        return AdapterRegistry.get_or_raise(provider)

    def new_session(self, provider: Provider) -> HttpSession:
        if self.session_factory is not None:
            return self.session_factory(provider)
        if self.config is None:
            return HttpSession()
        return HttpSession(
            user_agent=self.config.user_agent,
            timeout_s=self.config.timeout_s,
            min_interval_s=self.config.rate_limit_s,
        )

    def close_sessions(self) -> None:
        for provider, session in list(self.sessions.items()):
            try:
                session.close()
            except Exception as e:
                logger.debug("Fermeture de la session %s: %s", provider, e)
        self.sessions.clear()
