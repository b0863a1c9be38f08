"""Tests de l'adapteur Lezhin sur httpx.MockTransport (login, listing, assets, titre)."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from comiccorpus.core.adapters.base import AdapterRegistry
from comiccorpus.core.adapters.lezhin import LezhinAdapter
from comiccorpus.core.errors import AuthenticationFailure, ExtractionFailure, NetworkFailure
from comiccorpus.core.models import Credentials, EpisodeDescriptor, Provider
from comiccorpus.core.utils.http import HttpSession

CREDENTIALS = Credentials(username="reader@example.com", password="s3cret")


class _FakeLezhin:
    """Faux lezhin.com : routes login / comic / API viewer / CDN."""

    def __init__(self, fixtures_dir: Path, *, login_location: str = "https://www.lezhin.com/ko"):
        self.login_html = (fixtures_dir / "lezhin_login.html").read_text(encoding="utf-8")
        self.comic_html = (fixtures_dir / "lezhin_comic.html").read_text(encoding="utf-8")
        self.viewer_json = (fixtures_dir / "lezhin_viewer.json").read_text(encoding="utf-8")
        self.login_location = login_location
        self.requests: list[httpx.Request] = []
        self.posted: dict[str, list[str]] = {}
        self.cdn_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = request.url
        if url.host == "www.lezhin.com" and url.path == "/ko/login":
            if request.method == "POST":
                self.posted = parse_qs(request.content.decode("utf-8"))
                return httpx.Response(
                    302,
                    headers={"Location": self.login_location, "Set-Cookie": "_lz_session=abc; Path=/"},
                )
            return httpx.Response(200, text=self.login_html, headers={"Content-Type": "text/html"})
        if url.host == "www.lezhin.com" and url.path == "/ko/comic/sample-comic":
            return httpx.Response(200, text=self.comic_html, headers={"Content-Type": "text/html"})
        if url.host == "www.lezhin.com" and url.path == "/api/v2/inventory_groups/comic_viewer_k":
            return httpx.Response(200, text=self.viewer_json, headers={"Content-Type": "application/json"})
        if url.host == "cdn.lezhin.com":
            if self.cdn_status != 200:
                return httpx.Response(self.cdn_status)
            return httpx.Response(200, content=url.path.encode("utf-8"))
        return httpx.Response(404)


@pytest.fixture
def fake_site(fixtures_dir: Path) -> _FakeLezhin:
    return _FakeLezhin(fixtures_dir)


@pytest.fixture
def http(fake_site: _FakeLezhin):
    session = HttpSession(transport=httpx.MockTransport(fake_site))
    yield session
    session.close()


@pytest.fixture
def adapter() -> LezhinAdapter:
    return LezhinAdapter()


def test_adapter_registered():
    ad = AdapterRegistry.get(Provider.LEZHIN)
    assert ad is not None
    assert ad.requires_login is True


def test_authenticate_posts_login_form(adapter, http, fake_site):
    session = adapter.authenticate(http, CREDENTIALS)
    assert session is http
    assert fake_site.posted["authenticity_token"] == ["lz-token-1234=="]
    assert fake_site.posted["username"] == ["reader@example.com"]
    assert fake_site.posted["password"] == ["s3cret"]
    assert fake_site.posted["redirect"] == ["/ko"]


def test_authenticate_keeps_session_cookie(adapter, http, fake_site):
    adapter.authenticate(http, CREDENTIALS)
    adapter.list_episodes(http, "sample-comic")
    assert "_lz_session=abc" in fake_site.requests[-1].headers.get("cookie", "")


def test_authenticate_rejected_when_redirected_to_login(fixtures_dir: Path, adapter):
    site = _FakeLezhin(fixtures_dir, login_location="https://www.lezhin.com/ko/login?error=1")
    with HttpSession(transport=httpx.MockTransport(site)) as http:
        with pytest.raises(AuthenticationFailure):
            adapter.authenticate(http, CREDENTIALS)


def test_authenticate_without_credentials(adapter, http):
    with pytest.raises(AuthenticationFailure):
        adapter.authenticate(http, None)


def test_authenticate_without_token():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html><form></form></html>")

    with HttpSession(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(AuthenticationFailure) as exc_info:
            LezhinAdapter().authenticate(http, CREDENTIALS)
    assert isinstance(exc_info.value.__cause__, ExtractionFailure)


def test_list_episodes(adapter, http):
    listing = adapter.list_episodes(http, "sample-comic")
    assert listing.title == "Sample Comic"
    assert [e.seq for e in listing.episodes if not e.is_notice] == [1, 2, 3, 4]


def test_list_episodes_unknown_comic_is_network_failure(adapter, http):
    with pytest.raises(NetworkFailure) as exc_info:
        adapter.list_episodes(http, "missing-comic")
    assert exc_info.value.status_code == 404
    assert exc_info.value.provider == "lezhin"
    assert exc_info.value.external_id == "missing-comic"


def test_fetch_episode_assets(adapter, http, fake_site):
    descriptor = EpisodeDescriptor(seq=3, native_id="3", name="3화")
    assets = adapter.fetch_episode_assets(http, "sample-comic", descriptor)
    assert assets.title == "3화"
    assert assets.images == [
        b"/v2/episodes/sample-comic/3/contents/scrolls/1.webp",
        b"/v2/episodes/sample-comic/3/contents/scrolls/2.webp",
        b"/v2/episodes/sample-comic/3/contents/scrolls/3.webp",
    ]
    api_request = next(r for r in fake_site.requests if r.url.path.endswith("comic_viewer_k"))
    assert api_request.url.params["alias"] == "sample-comic"
    assert api_request.url.params["name"] == "3"
    assert api_request.url.params["type"] == "comic_episode"


def test_fetch_episode_assets_cdn_error(adapter, http, fake_site):
    fake_site.cdn_status = 403
    with pytest.raises(NetworkFailure) as exc_info:
        adapter.fetch_episode_assets(http, "sample-comic", EpisodeDescriptor(seq=3, native_id="3"))
    assert exc_info.value.status_code == 403


def test_fetch_title(adapter, http):
    assert adapter.fetch_title(http, "sample-comic") == "Sample Comic"
