"""
Extraction Naver Webtoon : page liste mobile (triée ASC/DESC) et page épisode desktop.

Page liste :
    <meta property="og:title" content="Titre">
    <ul class="section_episode_list">
      <li class="item" data-no="12">
        <a class="link" href="/webtoon/detail.nhn?titleId=...&no=12"><span class="name">12화</span></a>
      </li>
    </ul>
Un lien href="#" désigne un épisode pas encore lisible : ignoré.

Page épisode :
    <div class="tit_area"><h3>Titre épisode</h3></div>
    <div class="wt_viewer"><img src="..."> ...</div>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urljoin

from comiccorpus.core.errors import ExtractionFailure
from comiccorpus.core.extraction.common import make_soup
from comiccorpus.core.utils.text import clean_title

MOBILE_COMIC_BASE_URL = "https://m.comic.naver.com"


@dataclass
class ListItem:
    no: int
    name: str | None
    url: str


@dataclass
class ListPage:
    title: str | None
    items: list[ListItem] = field(default_factory=list)

    @property
    def numbers(self) -> list[int]:
        return [item.no for item in self.items]


def parse_episode_list_page(html: str, base_url: str = MOBILE_COMIC_BASE_URL) -> ListPage:
    """Parse une page liste : titre du comic (og:title) + items (numéro, nom, URL)."""
    soup = make_soup(html)
    meta = soup.select_one("meta[property='og:title']")
    if meta is None:
        raise ExtractionFailure(
            "Expected comic title metadata in episode list page",
            selector_used="meta[property='og:title']",
        )
    comic_title = clean_title(meta.get("content"))

    items: list[ListItem] = []
    for li in soup.select("ul.section_episode_list li.item"):
        raw_no = li.get("data-no")
        if raw_no is None:
            raise ExtractionFailure("Cannot parse data-no attribute from episode list item")
        try:
            no = int(str(raw_no).strip())
        except ValueError as e:
            raise ExtractionFailure(f"data-no non numérique : {raw_no!r}") from e
        link = li.select_one("a.link")
        if link is None or not link.get("href"):
            raise ExtractionFailure("Cannot find episode page link item", selector_used="a.link")
        href = link["href"].strip()
        if href == "#":
            continue
        name_el = li.select_one(".name")
        name = clean_title(name_el.get_text(" ", strip=True)) if name_el is not None else None
        items.append(ListItem(no=no, name=name, url=urljoin(base_url, href)))
    return ListPage(title=comic_title, items=items)


def scan_bounds(ascending: ListPage, descending: ListPage) -> tuple[int, int]:
    """Borne basse = plus petit numéro de la page ASC, borne haute = plus grand de la page DESC."""
    if not ascending.items or not descending.items:
        raise ExtractionFailure("Liste d'épisodes vide : bornes de scan introuvables")
    lowest = min(ascending.numbers)
    highest = max(descending.numbers)
    if lowest > highest:
        raise ExtractionFailure(f"Bornes de scan incohérentes : {lowest} > {highest}")
    return lowest, highest


def episode_scan_range(lowest: int, highest: int) -> list[int]:
    """
    Intervalle fermé [lowest, highest].

    Suppose une numérotation contiguë par comic : un épisode spécial non numéroté
    inséré par l'éditeur n'est pas vu par ce scan.
    """
    if lowest < 1 or lowest > highest:
        raise ExtractionFailure(f"Intervalle de scan invalide : [{lowest}, {highest}]")
    return list(range(lowest, highest + 1))


def parse_episode_page(html: str, page_url: str = "") -> tuple[str | None, list[str]]:
    """Titre de l'épisode et URLs des images du viewer, dans l'ordre du document."""
    soup = make_soup(html)
    viewer = soup.select_one(".wt_viewer")
    if viewer is None:
        raise ExtractionFailure("Expected wt_viewer element in episode page", selector_used=".wt_viewer")
    links: list[str] = []
    for img in viewer.find_all("img"):
        src = (img.get("src") or "").strip()
        if not src:
            raise ExtractionFailure("Expected src link in episode img element")
        links.append(urljoin(page_url, src) if page_url else src)

    title_el = soup.select_one(".tit_area h3")
    title = clean_title(title_el.get_text(" ", strip=True)) if title_el is not None else None
    return title, links
