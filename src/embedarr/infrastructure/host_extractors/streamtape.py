"""Streamtape extractor: builds the ``get_video`` URL from the embed page.

The embed page carries ``id=…&expires=…&ip=…&token=…`` in a hidden element;
a script rewrites the token before use, so the corrected token is taken
from the ``getElementById`` line when present.
"""

from __future__ import annotations

import re
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

_PARAMS_RE = re.compile(r"(id=[^\"'&]*&expires=\d+&ip=[^\"'&]*&token=[^\"'&]*?)([\"'<])")
_TOKEN_RE = re.compile(r"document\.getElementById[^<]*&token=([A-Za-z0-9\-_]+)")


class StreamtapeExtractor:
    """Resolves Streamtape embed pages to direct MP4 URLs."""

    def __init__(self, http_client: httpx.AsyncClient, *, timeout: float = 15.0) -> None:
        self._http = http_client
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "streamtape"

    async def extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        try:
            resp = await self._http.get(
                url,
                headers=request_headers(headers),
                follow_redirects=True,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            log.warning("streamtape_request_failed", url=url, error=str(exc))
            return Failed("request failed")

        if resp.status_code != 200:
            log.warning("streamtape_http_error", status=resp.status_code, url=url)
            return Failed(f"HTTP {resp.status_code}")

        html = resp.text
        if ">Video not found" in html:
            log.info("streamtape_video_not_found", url=url)
            return Failed("file offline")

        match = _PARAMS_RE.search(html)
        if not match:
            log.warning("streamtape_no_params", url=url)
            return Failed("no video parameters")

        params = match.group(1)
        token_match = _TOKEN_RE.search(html)
        if token_match:
            params = re.sub(r"token=[^&]*", f"token={token_match.group(1)}", params)

        host = urlparse(str(resp.url)).hostname or "streamtape.com"
        video_url = f"https://{host}/get_video?{params}&stream=1"

        log.debug("streamtape_extracted", video_url=video_url[:80])
        stream = build_stream(
            video_url,
            f"{label_prefix} StreamTape".strip(),
            source_url=url,
            quality=QualityTag.UNKNOWN,
            headers={"Referer": f"https://{host}/"},
        )
        return Streams((stream,))
