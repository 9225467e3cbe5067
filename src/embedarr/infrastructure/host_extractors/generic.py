"""Fallback extractor for URLs no host rule matched.

Follows redirects and accepts the final URL when its path names a media
file.  Anything else is reported as an unresolved host so operators can see
which provider needs an extractor.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urlparse

import httpx
import structlog

from embedarr.domain.entities.streams import ExtractionOutcome, Failed, Streams
from embedarr.infrastructure.common.urls import hostname_of
from embedarr.infrastructure.host_extractors._base import build_stream, request_headers

log = structlog.get_logger(__name__)

MEDIA_EXTENSIONS: tuple[str, ...] = (".mp4", ".m3u8", ".mkv")


def has_media_extension(url: str) -> bool:
    """True when the URL path contains a known media file extension."""
    path = urlparse(url).path.lower()
    return any(ext in path for ext in MEDIA_EXTENSIONS)


class GenericExtractor:
    """Redirect-following fallback for unknown hosts."""

    def __init__(self, http_client: httpx.AsyncClient, *, timeout: float = 15.0) -> None:
        self._http = http_client
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "generic"

    async def extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        try:
            final_url = await self._final_url(url, headers)
        except httpx.TimeoutException:
            if has_media_extension(url):
                log.debug("generic_redirect_timeout_media_url", url=url)
                return self._direct(url, url, label_prefix)
            log.warning("generic_redirect_timeout", url=url)
            return Failed(f"timeout at {hostname_of(url) or url}")
        except httpx.HTTPError as exc:
            if has_media_extension(url):
                log.debug("generic_redirect_failed_media_url", url=url, error=str(exc))
                return self._direct(url, url, label_prefix)
            log.warning("generic_redirect_failed", url=url, error=str(exc))
            return Failed(f"connection error at {hostname_of(url) or url}")

        if has_media_extension(final_url):
            log.debug("generic_direct_stream", url=url, final=final_url)
            return self._direct(final_url, url, label_prefix)

        host = hostname_of(final_url) or hostname_of(url) or url
        log.info("generic_unresolved_host", host=host, url=url)
        return Failed(f"unresolved host {host}")

    @staticmethod
    def _direct(playback_url: str, source_url: str, label_prefix: str) -> Streams:
        stream = build_stream(
            playback_url,
            f"{label_prefix} Direct Stream".strip(),
            source_url=source_url,
        )
        return Streams((stream,))

    async def _final_url(self, url: str, headers: Mapping[str, str]) -> str:
        """Final URL after redirects; GET without reading the body if HEAD is refused."""
        resp = await self._http.head(
            url,
            headers=request_headers(headers),
            follow_redirects=True,
            timeout=self._timeout,
        )
        if resp.status_code not in (403, 405, 501):
            return str(resp.url)
        async with self._http.stream(
            "GET",
            url,
            headers=request_headers(headers),
            follow_redirects=True,
            timeout=self._timeout,
        ) as streamed:
            return str(streamed.url)
