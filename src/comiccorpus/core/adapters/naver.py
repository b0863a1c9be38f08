"""Adapteur Naver Webtoon : découverte par intervalle (pages liste ASC/DESC) + page viewer desktop."""

from __future__ import annotations

import logging
from enum import Enum

from comiccorpus.core.adapters.base import AdapterRegistry
from comiccorpus.core.errors import CrawlError, ExtractionFailure
from comiccorpus.core.extraction import naver as nv
from comiccorpus.core.models import Credentials, EpisodeAssets, EpisodeDescriptor, EpisodeListing, Provider
from comiccorpus.core.utils.http import HttpSession

logger = logging.getLogger(__name__)

MOBILE_EPISODE_LIST_URL = "https://m.comic.naver.com/webtoon/list.nhn"
COMIC_EPISODE_PAGE_URL = "https://comic.naver.com/webtoon/detail.nhn"
IMAGE_REFERER = "https://comic.naver.com/"
FAKE_CHROME_74_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/74.0.3729.169 Safari/537.36"
)


class SortOrder(str, Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"


def _tag(exc: CrawlError, external_id: str | None = None) -> CrawlError:
    exc.provider = exc.provider or Provider.NAVER.value
    exc.external_id = exc.external_id or external_id
    return exc


class NaverAdapter:
    """Adapteur pour comic.naver.com (pas d'authentification requise)."""

    provider = Provider.NAVER
    requires_login = False

    def authenticate(self, http: HttpSession, credentials: Credentials | None) -> HttpSession:
        return http

    def fetch_list_page(
        self, session: HttpSession, external_id: str, page: int, order: SortOrder
    ) -> nv.ListPage:
        html = session.get_text(
            MOBILE_EPISODE_LIST_URL,
            params={"titleId": external_id, "sortOrder": order.value, "page": page},
        )
        return nv.parse_episode_list_page(html)

    def list_episodes(self, session: HttpSession, external_id: str) -> EpisodeListing:
        """
        Page 1 triée ASC → borne basse, page 1 triée DESC → borne haute ;
        un descripteur par numéro de l'intervalle fermé (seq = numéro Naver).
        """
        try:
            ascending = self.fetch_list_page(session, external_id, 1, SortOrder.ASCENDING)
            descending = self.fetch_list_page(session, external_id, 1, SortOrder.DESCENDING)
            lowest, highest = nv.scan_bounds(ascending, descending)
            numbers = nv.episode_scan_range(lowest, highest)
        except CrawlError as e:
            raise _tag(e, external_id)

        logger.info("Title found for current comic: %s (episodes %d..%d)", ascending.title, lowest, highest)
        names = {item.no: item.name for item in ascending.items + descending.items}
        episodes = [
            EpisodeDescriptor(seq=no, native_id=str(no), name=names.get(no))
            for no in numbers
        ]
        return EpisodeListing(title=ascending.title, episodes=episodes)

    def fetch_episode_assets(
        self, session: HttpSession, external_id: str, descriptor: EpisodeDescriptor
    ) -> EpisodeAssets:
        try:
            html = session.get_text(
                COMIC_EPISODE_PAGE_URL,
                params={"titleId": external_id, "no": descriptor.native_id},
            )
            title, links = nv.parse_episode_page(html, COMIC_EPISODE_PAGE_URL)
            if not links:
                raise ExtractionFailure(f"Aucune image dans le viewer de l'épisode {descriptor.native_id}")
            images: list[bytes] = []
            for link in links:
                logger.debug("image link: %s", link)
                images.append(
                    session.get_bytes(
                        link,
                        headers={"User-Agent": FAKE_CHROME_74_UA, "Referer": IMAGE_REFERER},
                    )
                )
        except CrawlError as e:
            raise _tag(e, external_id)
        return EpisodeAssets(images=images, title=title or descriptor.name)

    def fetch_title(self, session: HttpSession, external_id: str) -> str | None:
        try:
            return self.fetch_list_page(session, external_id, 1, SortOrder.ASCENDING).title
        except CrawlError as e:
            raise _tag(e, external_id)


# Enregistrement au chargement du module
AdapterRegistry.register(NaverAdapter())
