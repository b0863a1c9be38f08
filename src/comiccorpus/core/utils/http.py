"""Utilitaires HTTP : session httpx partagée par provider, timeout, rate limit optionnel."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Mapping, Optional

import httpx

from comiccorpus.core.errors import NetworkFailure

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:79.0) Gecko/20100101 Firefox/79.0"

# Dernière requête (monotonic) pour rate limit global entre appels
_last_request_time: Optional[float] = None
_last_request_lock = threading.Lock()


def _reserve_request_slot(min_interval_s: Optional[float]) -> None:
    """Réserve un créneau d'appel en respectant un intervalle minimal global."""
    global _last_request_time
    if min_interval_s is None or min_interval_s <= 0:
        return
    while True:
        with _last_request_lock:
            now = time.monotonic()
            if _last_request_time is None:
                _last_request_time = now
                return
            wait_s = (_last_request_time + min_interval_s) - now
            if wait_s <= 0:
                _last_request_time = now
                return
        time.sleep(wait_s)


class HttpSession:
    """
    Session HTTP d'un provider : un seul httpx.Client, donc cookies conservés
    entre le login et les requêtes suivantes.

    Pas de retry : une erreur de transport ou un statut non 2xx lève NetworkFailure,
    relancer le crawl complet sert de reprise.
    """

    def __init__(
        self,
        *,
        user_agent: str | None = DEFAULT_USER_AGENT,
        timeout_s: float = 30.0,
        min_interval_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {"User-Agent": user_agent} if user_agent else None
        self.min_interval_s = min_interval_s
        self.client = httpx.Client(
            timeout=timeout_s,
            follow_redirects=True,
            headers=headers,
            transport=transport,
        )

    def __enter__(self) -> "HttpSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = True,
        raise_for_status: bool = True,
    ) -> httpx.Response:
        _reserve_request_slot(self.min_interval_s)
        try:
            resp = self.client.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                follow_redirects=follow_redirects,
            )
        except httpx.TransportError as exc:
            raise NetworkFailure(f"{method} {url}: {exc!s}", url=url) from exc
        logger.debug("%s %s -> %s", method, resp.url, resp.status_code)
        if raise_for_status:
            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise NetworkFailure(
                    f"{method} {url}: HTTP {resp.status_code}",
                    status_code=resp.status_code,
                    url=url,
                ) from exc
        return resp

    def get_text(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        resp = self.request("GET", url, params=params, headers=headers)
        # Prefer UTF-8 for HTML when charset is missing or dubious
        if resp.encoding in (None, "ascii", "ISO-8859-1"):
            resp.encoding = "utf-8"
        return resp.text

    def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        resp = self.request("GET", url, params=params, headers=headers)
        try:
            return resp.json()
        except ValueError as exc:
            raise NetworkFailure(f"GET {url}: réponse non JSON", status_code=resp.status_code, url=url) from exc

    def get_bytes(self, url: str, *, headers: Mapping[str, str] | None = None) -> bytes:
        return self.request("GET", url, headers=headers).content

    def post_form(
        self,
        url: str,
        data: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = True,
    ) -> httpx.Response:
        """POST application/x-www-form-urlencoded ; statut non vérifié (3xx attendu pour un login)."""
        return self.request(
            "POST",
            url,
            data=data,
            headers=headers,
            follow_redirects=follow_redirects,
            raise_for_status=False,
        )
