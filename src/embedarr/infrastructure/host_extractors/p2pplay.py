"""P2PPlay extractor: resolves p2pplay player ids through the video API.

Flow:
    1. Find the p2pplay player URL (the link itself, or the nested iframe of
       the fetched embed page).
    2. Take the video id from the URL fragment (``#abc``) or ``id=`` query.
    3. GET ``https://t1.p2pplay.pro/api/v1/video?id={id}&w=1920&h=1080&r={site}``
       with ``Referer``/``Origin`` set to the content site.
    4. The body is base64; its decoded text is JSON or free text with media
       URLs (see ``_decode``).

Every internal failure yields ``Empty``: this provider reports "no streams"
rather than diagnostics.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import parse_qs, urlparse

import httpx
import structlog

from embedarr.domain.entities.streams import (
    Empty,
    ExtractionOutcome,
    Streams,
)
from embedarr.infrastructure.common.html_selectors import (
    iframe_source,
    parse_html,
    select_first,
)
from embedarr.infrastructure.common.urls import hostname_of, normalize_url, origin_of
from embedarr.infrastructure.host_extractors._base import build_stream, request_headers
from embedarr.infrastructure.host_extractors._decode import (
    best_effort_decode,
    decode_base64_text,
)

log = structlog.get_logger(__name__)

_MARKER = "p2pplay"
DEFAULT_API_HOST = "t1.p2pplay.pro"


def extract_video_id(player_url: str) -> str | None:
    """Video id from ``…/#<id>`` or ``…?id=<id>``; ``None`` when blank."""
    if "#" in player_url:
        video_id = player_url.rsplit("#", 1)[1].strip()
        return video_id or None
    try:
        query = parse_qs(urlparse(player_url).query)
    except ValueError:
        return None
    values = query.get("id")
    if values and values[0].strip():
        return values[0].strip()
    return None


def build_api_url(video_id: str, referrer: str, api_host: str = DEFAULT_API_HOST) -> str:
    return f"https://{api_host}/api/v1/video?id={video_id}&w=1920&h=1080&r={referrer}"


class P2PPlayExtractor:
    """Resolves p2pplay players via their base64 video API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_host: str = DEFAULT_API_HOST,
        default_referrer: str = "",
        timeout: float = 15.0,
    ) -> None:
        self._http = http_client
        self._api_host = api_host
        self._default_referrer = default_referrer
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "p2pplay"

    async def extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        try:
            return await self._extract(url, headers, label_prefix)
        except httpx.HTTPError as exc:
            log.warning("p2pplay_request_failed", url=url, error=str(exc))
            return Empty()
        except Exception:
            log.warning("p2pplay_extract_crashed", url=url, exc_info=True)
            return Empty()

    async def _extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        player_url = url if _MARKER in url.lower() else await self._find_player(url, headers)
        if not player_url:
            return Empty()

        video_id = extract_video_id(player_url)
        if not video_id:
            log.info("p2pplay_no_video_id", player_url=player_url)
            return Empty()

        referrer = self._referrer_domain(headers)
        api_url = build_api_url(video_id, referrer, self._api_host)
        resp = await self._http.get(
            api_url,
            headers=request_headers(
                headers,
                {
                    "Accept": "*/*",
                    "Referer": f"https://{referrer}/",
                    "Origin": f"https://{referrer}",
                },
            ),
            timeout=self._timeout,
        )
        if resp.status_code != 200:
            log.warning("p2pplay_api_http_error", status=resp.status_code, video_id=video_id)
            return Empty()

        encoded = resp.text.strip()
        decoded = decode_base64_text(encoded)
        if decoded is None:
            log.warning("p2pplay_bad_payload", video_id=video_id, size=len(encoded))
            return Empty()

        sources = best_effort_decode(decoded)
        if not sources:
            log.info("p2pplay_no_sources", video_id=video_id)
            return Empty()

        prefix = f"{label_prefix} P2PPlay".strip()
        seen: set[str] = set()
        resolved = []
        for source in sources:
            if source.url in seen:
                continue
            seen.add(source.url)
            resolved.append(
                build_stream(
                    source.url,
                    prefix,
                    source_url=player_url,
                    quality_hint=source.label,
                )
            )
        streams = tuple(resolved)
        log.debug("p2pplay_extracted", video_id=video_id, count=len(streams))
        return Streams(streams)

    async def _find_player(self, url: str, headers: Mapping[str, str]) -> str | None:
        resp = await self._http.get(
            url,
            headers=request_headers(headers),
            follow_redirects=True,
            timeout=self._timeout,
        )
        if resp.status_code != 200:
            log.warning("p2pplay_embed_http_error", status=resp.status_code, url=url)
            return None

        soup = parse_html(resp.text)
        iframe = select_first(soup, f'iframe[src*="{_MARKER}"]', "iframe#frame")
        src = iframe_source(iframe) if iframe is not None else ""
        if not src:
            log.info("p2pplay_no_player_iframe", url=url)
            return None
        return normalize_url(src, origin_of(str(resp.url)) or url)

    def _referrer_domain(self, headers: Mapping[str, str]) -> str:
        for key, value in headers.items():
            if key.lower() == "referer" and value:
                host = hostname_of(value)
                if host:
                    return host
        return self._default_referrer
