"""DoodStream extractor.

Extraction: GET embed page → ``/pass_md5/`` path + token → GET pass_md5
endpoint (returns the video base URL) → append token and expiry.

Captcha-protected pages cannot be resolved and report ``Failed``.
"""

from __future__ import annotations

import re
import time
from collections.abc import Mapping
from urllib.parse import urlparse

import httpx
import structlog

from embedarr.domain.entities.streams import (
    ExtractionOutcome,
    Failed,
    QualityTag,
    Streams,
)
from embedarr.infrastructure.host_extractors._base import build_stream, request_headers

log = structlog.get_logger(__name__)

_PASS_MD5_RE = re.compile(r"'(/pass_md5/[^<>\"']+)'")
_TOKEN_RE = re.compile(r"&token=([a-z0-9]+)")
_OFFLINE_RE = re.compile(r"<h1>\s*Oops!\s*Sorry\s*</h1>")
_CAPTCHA_MARKERS = ("g-recaptcha", "cf-turnstile", "captcha_required")


def to_embed_url(url: str) -> str:
    """DoodStream download pages (``/d/``) share ids with embeds (``/e/``)."""
    if "/e/" in url:
        return url
    return url.replace("/d/", "/e/", 1)


class DoodStreamExtractor:
    """Resolves DoodStream embed pages (dood.* and its mirrors)."""

    def __init__(self, http_client: httpx.AsyncClient, *, timeout: float = 15.0) -> None:
        self._http = http_client
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "doodstream"

    async def extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        embed_url = to_embed_url(url)
        try:
            resp = await self._http.get(
                embed_url,
                headers=request_headers(headers),
                follow_redirects=True,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            log.warning("doodstream_request_failed", url=embed_url, error=str(exc))
            return Failed("request failed")

        if resp.status_code != 200:
            log.warning("doodstream_http_error", status=resp.status_code, url=embed_url)
            return Failed(f"HTTP {resp.status_code}")

        html = resp.text
        page_url = str(resp.url)

        if _OFFLINE_RE.search(html):
            log.info("doodstream_offline", url=url)
            return Failed("file offline")

        pass_match = _PASS_MD5_RE.search(html)
        if not pass_match:
            if any(marker in html for marker in _CAPTCHA_MARKERS):
                log.warning("doodstream_captcha_required", url=url)
                return Failed("captcha required")
            log.warning("doodstream_no_pass_md5", url=url)
            return Failed("no pass_md5 path")

        token_match = _TOKEN_RE.search(html)
        if not token_match:
            log.warning("doodstream_no_token", url=url)
            return Failed("no token")

        parsed = urlparse(page_url)
        pass_url = f"{parsed.scheme}://{parsed.netloc}{pass_match.group(1)}"
        try:
            pass_resp = await self._http.get(
                pass_url,
                headers=request_headers(
                    headers,
                    {"X-Requested-With": "XMLHttpRequest", "Referer": page_url},
                ),
                follow_redirects=True,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            log.warning("doodstream_pass_md5_failed", url=pass_url, error=str(exc))
            return Failed("pass_md5 request failed")

        if pass_resp.status_code != 200:
            log.warning("doodstream_pass_md5_error", status=pass_resp.status_code)
            return Failed(f"pass_md5 HTTP {pass_resp.status_code}")

        video_base = pass_resp.text.strip()
        if not video_base.startswith("http"):
            log.warning("doodstream_invalid_video_base", base=video_base[:50])
            return Failed("invalid video base")

        expiry = int(time.time() * 1000)
        video_url = f"{video_base}?token={token_match.group(1)}&expiry={expiry}"

        log.debug("doodstream_extracted", video_url=video_url[:80])
        stream = build_stream(
            video_url,
            f"{label_prefix} Dood".strip(),
            source_url=url,
            quality=QualityTag.UNKNOWN,
            headers={"Referer": page_url},
        )
        return Streams((stream,))
