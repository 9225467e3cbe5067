"""Generic embed-page extractor for JWPlayer-style video hosts.

Most hosts serve an embed page whose player config (plain or packed
JavaScript) lists the stream URLs.  Each such host is described by an
``EmbedHostConfig`` (name, display name, offline markers) while the
extraction logic lives once in ``EmbedPageExtractor``.

Adding a new host of this kind = adding an ``EmbedHostConfig`` constant,
appending it to ``ALL_EMBED_HOSTS`` and adding a ``HostRule`` for its
domain fragments.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import httpx
import structlog

from embedarr.domain.entities.streams import (
    Empty,
    ExtractionOutcome,
    Failed,
    Streams,
)
from embedarr.infrastructure.host_extractors._base import build_stream, request_headers
from embedarr.infrastructure.host_extractors._video_extract import (
    extract_player_sources,
)

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EmbedHostConfig:
    """Immutable configuration for one embed-page host."""

    name: str
    display_name: str
    offline_markers: tuple[str, ...] = ()


_STANDARD_MARKERS = (
    "File Not Found",
    "file was removed",
    ">The file expired",
    ">The file was deleted",
)


STREAMWISH = EmbedHostConfig(
    name="streamwish",
    display_name="StreamWish",
    offline_markers=(
        *_STANDARD_MARKERS,
        "File is gone",
        "This video has been locked watch or does not exist",
        "Video temporarily not available",
    ),
)

VIDHIDE = EmbedHostConfig(
    name="vidhide",
    display_name="VidHide",
    offline_markers=(*_STANDARD_MARKERS, "Video embed restricted"),
)

FILEMOON = EmbedHostConfig(
    name="filemoon",
    display_name="FileMoon",
    offline_markers=(*_STANDARD_MARKERS, "Page not found"),
)

MIXDROP = EmbedHostConfig(
    name="mixdrop",
    display_name="MixDrop",
    offline_markers=("/imgs/illustration-notfound.png", "File not found"),
)

MP4UPLOAD = EmbedHostConfig(
    name="mp4upload",
    display_name="MP4Upload",
    offline_markers=(*_STANDARD_MARKERS, "video you are looking for is not found"),
)

STREAMLARE = EmbedHostConfig(
    name="streamlare",
    display_name="Streamlare",
    offline_markers=("File not found", "Video not found"),
)

ALL_EMBED_HOSTS: tuple[EmbedHostConfig, ...] = (
    STREAMWISH,
    VIDHIDE,
    FILEMOON,
    MIXDROP,
    MP4UPLOAD,
    STREAMLARE,
)


class EmbedPageExtractor:
    """Fetches a host embed page and reads the player's stream sources.

    Satisfies ``HostExtractorPort``.
    """

    def __init__(
        self,
        config: EmbedHostConfig,
        http_client: httpx.AsyncClient,
        *,
        timeout: float = 15.0,
    ) -> None:
        self._config = config
        self._http = http_client
        self._timeout = timeout

    @property
    def name(self) -> str:
        return self._config.name

    async def extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        host = self._config.name
        try:
            resp = await self._http.get(
                url,
                headers=request_headers(headers),
                follow_redirects=True,
                timeout=self._timeout,
            )
        except httpx.TimeoutException:
            log.warning(f"{host}_request_timeout", url=url)
            return Failed("request timed out")
        except httpx.HTTPError as exc:
            log.warning(f"{host}_request_failed", url=url, error=str(exc))
            return Failed("request failed")

        if resp.status_code != 200:
            log.warning(f"{host}_http_error", status=resp.status_code, url=url)
            return Failed(f"HTTP {resp.status_code}")

        html = resp.text
        for marker in self._config.offline_markers:
            if marker in html:
                log.info(f"{host}_file_offline", url=url, marker=marker)
                return Failed("file offline")

        sources = extract_player_sources(html)
        if not sources:
            log.info(f"{host}_extraction_failed", url=url)
            return Failed("no player sources")

        prefix = f"{label_prefix} {self._config.display_name}".strip()
        cdn_headers = {"Referer": str(resp.url)}
        streams = tuple(
            build_stream(
                source,
                prefix,
                source_url=url,
                quality_hint=label,
                headers=cdn_headers,
            )
            for source, label in sources
        )
        log.debug(f"{host}_extracted", url=url, count=len(streams))
        return Streams(streams) if streams else Empty()


def create_embed_page_extractors(
    http_client: httpx.AsyncClient,
    *,
    timeout: float = 15.0,
) -> list[EmbedPageExtractor]:
    """Create ``EmbedPageExtractor`` instances for all known embed hosts."""
    return [
        EmbedPageExtractor(config=cfg, http_client=http_client, timeout=timeout)
        for cfg in ALL_EMBED_HOSTS
    ]
