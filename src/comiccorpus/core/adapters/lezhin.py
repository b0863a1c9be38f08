"""Adapteur Lezhin : login par formulaire (jeton anti-forgery) + objet __LZ_PRODUCT__ + API viewer."""

from __future__ import annotations

import logging
from urllib.parse import quote, urlparse

from comiccorpus.core.adapters.base import AdapterRegistry
from comiccorpus.core.errors import AuthenticationFailure, CrawlError, ExtractionFailure, NetworkFailure
from comiccorpus.core.extraction import lezhin as lz
from comiccorpus.core.models import Credentials, EpisodeAssets, EpisodeDescriptor, EpisodeListing, Provider
from comiccorpus.core.utils.http import HttpSession

logger = logging.getLogger(__name__)

AUTH_URL = "https://www.lezhin.com/ko/login?redirect=/ko"
EPISODE_LIST_URL = "https://www.lezhin.com/ko/comic/"
COMIC_API_URL = "https://www.lezhin.com/api/v2/inventory_groups/comic_viewer_k"
CDN_BASE_URL = "https://cdn.lezhin.com/v2"

API_HEADERS = {
    "Accept": "application/json, text/javascript, */*; q=0.01",
    "Accept-Language": "ko-KR,ko;q=0.8,en-US;q=0.5,en;q=0.3",
}


def _tag(exc: CrawlError, external_id: str | None = None) -> CrawlError:
    exc.provider = exc.provider or Provider.LEZHIN.value
    exc.external_id = exc.external_id or external_id
    return exc


class LezhinAdapter:
    """Adapteur pour lezhin.com (session authentifiée requise pour les épisodes payants)."""

    provider = Provider.LEZHIN
    requires_login = True

    def comic_url(self, external_id: str) -> str:
        return EPISODE_LIST_URL + quote(external_id, safe="")

    def authenticate(self, http: HttpSession, credentials: Credentials | None) -> HttpSession:
        """
        GET de la page de login pour le jeton, puis POST du formulaire sans suivre
        la redirection : un login accepté répond 3xx vers une page hors /login.
        """
        if credentials is None:
            raise AuthenticationFailure("Identifiants requis pour Lezhin", provider=self.provider.value)
        try:
            token = lz.extract_authenticity_token(http.get_text(AUTH_URL))
        except (NetworkFailure, ExtractionFailure) as e:
            raise AuthenticationFailure(
                f"Page de login inexploitable : {e}", provider=self.provider.value
            ) from e
        logger.debug("authenticity_token: %s", token)

        try:
            resp = http.post_form(
                AUTH_URL,
                {
                    "utf8": "✓",
                    "authenticity_token": token,
                    "redirect": "/ko",
                    "username": credentials.username,
                    "password": credentials.password,
                    "remember_me": "false",
                },
                follow_redirects=False,
            )
        except NetworkFailure as e:
            raise AuthenticationFailure(f"Login impossible : {e}", provider=self.provider.value) from e

        location = resp.headers.get("location")
        logger.debug("Auth response code: %s", resp.status_code)
        logger.debug("Auth response location: %s", location or "<None>")

        if not resp.is_redirect or not location:
            raise AuthenticationFailure(
                f"Authentication failure: unexpected status {resp.status_code}",
                provider=self.provider.value,
            )
        if "/login" in urlparse(location).path:
            raise AuthenticationFailure(
                "Authentication failure: redirected back to login page",
                provider=self.provider.value,
            )
        return http

    def list_episodes(self, session: HttpSession, external_id: str) -> EpisodeListing:
        try:
            product = lz.extract_product(session.get_text(self.comic_url(external_id)))
            listing = lz.parse_product(product)
        except CrawlError as e:
            raise _tag(e, external_id)
        for ep in listing.episodes:
            logger.debug("found episode: %s (%s)", ep.name, ep.kind.value)
        return listing

    def fetch_episode_assets(
        self, session: HttpSession, external_id: str, descriptor: EpisodeDescriptor
    ) -> EpisodeAssets:
        try:
            payload = session.get_json(
                COMIC_API_URL,
                params={
                    "platform": "web",
                    "store": "web",
                    "alias": external_id,
                    "name": descriptor.native_id,
                    "preload": "true",
                    "type": "comic_episode",
                },
                headers=API_HEADERS,
            )
            paths = lz.parse_viewer_payload(payload)
            images: list[bytes] = []
            for path in paths:
                url = CDN_BASE_URL + path
                logger.debug("image link: %s", url)
                images.append(session.get_bytes(url))
        except CrawlError as e:
            raise _tag(e, external_id)
        return EpisodeAssets(images=images, title=descriptor.name)

    def fetch_title(self, session: HttpSession, external_id: str) -> str | None:
        logger.debug("Fetching title for comic ID %s", external_id)
        try:
            return lz.product_title(lz.extract_product(session.get_text(self.comic_url(external_id))))
        except CrawlError as e:
            raise _tag(e, external_id)


# Enregistrement au chargement du module
AdapterRegistry.register(LezhinAdapter())
