"""Follow internal embed pages and URL shorteners to the real host URL.

Two independent rules, each a single hop:

1. Internal embed page: the link shares the episode page's host and its
   path contains an embed marker.  The page is fetched and the first nested
   iframe's ``src``/``data-src`` becomes the new candidate.
2. URL shortener: the link's host is a known shortener.  It is fetched
   once following redirects and the final URL becomes the candidate.

Every failure raises ``DereferenceFailed``; the caller turns it into a
placeholder stream for that link only.
"""

from __future__ import annotations

import time
from collections.abc import Mapping

import httpx
import structlog

from embedarr.domain.exceptions import DereferenceFailed
from embedarr.infrastructure.common.html_selectors import iframe_source, parse_html
from embedarr.infrastructure.common.urls import (
    hostname_of,
    normalize_url,
    origin_of,
    same_site,
)

log = structlog.get_logger(__name__)

# Evict expired redirect entries every N dereference() calls
_EVICT_INTERVAL = 500


class _CacheEntry:
    """Time-bounded redirect target."""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: str, ttl: float) -> None:
        self.value = value
        self.expires_at = time.monotonic() + ttl

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class EmbedDereferencer:
    """Resolves one level of indirection in front of a host URL."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        embed_path_markers: tuple[str, ...],
        shortener_domains: tuple[str, ...],
        timeout: float = 15.0,
        redirect_cache_ttl: float = 3600.0,
    ) -> None:
        self._http = http_client
        self._embed_markers = tuple(m.lower() for m in embed_path_markers)
        self._shorteners = tuple(d.lower() for d in shortener_domains)
        self._timeout = timeout
        self._redirect_ttl = redirect_cache_ttl
        self._redirect_cache: dict[str, _CacheEntry] = {}
        self._calls = 0

    def is_internal_embed(self, url: str, page_url: str) -> bool:
        if not same_site(url, page_url):
            return False
        lowered = url.lower()
        return any(marker in lowered for marker in self._embed_markers)

    def is_shortener(self, url: str) -> bool:
        host = hostname_of(url)
        return any(
            host == domain or host.endswith(f".{domain}") for domain in self._shorteners
        )

    async def dereference(
        self,
        url: str,
        page_url: str,
        headers: Mapping[str, str],
    ) -> str:
        """Return the URL *url* ultimately points at.

        URLs matching neither rule are returned unchanged.
        """
        self._calls += 1
        if self._calls % _EVICT_INTERVAL == 0:
            self._evict_expired()

        if self.is_internal_embed(url, page_url):
            return await self._unwrap_embed(url, page_url, headers)
        if self.is_shortener(url):
            return await self._follow_shortener(url, headers)
        return url

    async def _unwrap_embed(
        self,
        url: str,
        page_url: str,
        headers: Mapping[str, str],
    ) -> str:
        try:
            resp = await self._http.get(
                url,
                headers=dict(headers),
                follow_redirects=True,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            log.warning("embed_fetch_timeout", url=url)
            raise DereferenceFailed("embed page timed out") from exc
        except httpx.HTTPError as exc:
            log.warning("embed_fetch_failed", url=url, error=str(exc))
            raise DereferenceFailed("embed page unreachable") from exc
        except (httpx.InvalidURL, ValueError) as exc:
            log.warning("embed_url_invalid", url=url, error=str(exc))
            raise DereferenceFailed("invalid embed URL") from exc

        if resp.status_code != 200:
            log.warning("embed_http_error", status=resp.status_code, url=url)
            raise DereferenceFailed(f"embed page returned HTTP {resp.status_code}")

        soup = parse_html(resp.text)
        for iframe in soup.select("iframe[src], iframe[data-src]"):
            src = iframe_source(iframe)
            if src:
                target = normalize_url(src, origin_of(page_url) or page_url)
                log.debug("embed_unwrapped", url=url, target=target)
                return target

        log.info("embed_without_iframe", url=url)
        raise DereferenceFailed("no nested iframe in embed page")

    async def _follow_shortener(self, url: str, headers: Mapping[str, str]) -> str:
        cached = self._redirect_cache.get(url)
        if cached is not None and not cached.is_expired:
            return cached.value

        try:
            resp = await self._http.get(
                url,
                headers=dict(headers),
                follow_redirects=True,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            log.warning("shortener_timeout", url=url)
            raise DereferenceFailed("shortener timed out") from exc
        except httpx.HTTPError as exc:
            log.warning("shortener_request_failed", url=url, error=str(exc))
            raise DereferenceFailed("failed to resolve redirect") from exc
        except (httpx.InvalidURL, ValueError) as exc:
            log.warning("shortener_url_invalid", url=url, error=str(exc))
            raise DereferenceFailed("invalid shortener URL") from exc

        final_url = str(resp.url)
        if final_url == url or self.is_shortener(final_url):
            log.info("shortener_not_resolved", url=url, final=final_url)
            raise DereferenceFailed("shortener did not redirect")

        log.debug("shortener_followed", original=url, final=final_url)
        self._redirect_cache[url] = _CacheEntry(final_url, self._redirect_ttl)
        return final_url

    def _evict_expired(self) -> None:
        expired = [k for k, v in self._redirect_cache.items() if v.is_expired]
        for k in expired:
            del self._redirect_cache[k]
