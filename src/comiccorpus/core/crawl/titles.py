"""Récupération des titres manquants (titres restés NULL après un crawl)."""

from __future__ import annotations

import logging
from typing import Iterable

from comiccorpus.core.crawl.context import CrawlContext
from comiccorpus.core.errors import AuthenticationFailure, CrawlError
from comiccorpus.core.models import Provider

logger = logging.getLogger(__name__)


def backfill_titles(context: CrawlContext, providers: Iterable[Provider] | None = None) -> int:
    """
    Pour chaque titre NULL, interroge l'adapteur (fetch_title) et met à jour la base.
    Une authentification par provider ; l'échec d'un titre est journalisé puis ignoré.

    Returns:
        Nombre de titres mis à jour.
    """
    updated = 0
    selected = list(providers) if providers is not None else list(Provider)
    try:
        for provider in selected:
            missing = context.db.get_titles_missing(provider)
            if not missing:
                continue
            logger.info("%d missing title(s) for %s", len(missing), provider)
            adapter = context.adapter_for(provider)
            http = context.new_session(provider)
            try:
                session = adapter.authenticate(http, context.credentials)
            except AuthenticationFailure as e:
                http.close()
                logger.error("Authentication failed for %s: %s", provider, e)
                continue
            context.sessions[provider] = session

            for external_id in missing:
                try:
                    title = adapter.fetch_title(session, external_id)
                except CrawlError as e:
                    logger.warning("Cannot fetch title of %s/%s: %s", provider, external_id, e)
                    continue
                if not title:
                    logger.warning("Empty title for %s/%s", provider, external_id)
                    continue
                try:
                    context.db.upsert_title(provider, external_id, title)
                except CrawlError as e:
                    logger.error("%s", e)
                    continue
                logger.info("Title updated: %s/%s = %s", provider, external_id, title)
                updated += 1
    finally:
        context.close_sessions()
    return updated
