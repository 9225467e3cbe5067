"""Episode stream resolution use case.

Episode page -> discovered servers -> normalize -> dereference
-> host extractor -> placeholders / dedupe -> ranked ResolvedStream list.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Protocol

import httpx
import structlog

from embedarr.domain.entities.streams import (
    ExtractionOutcome,
    Failed,
    ResolvedStream,
    ServerLink,
    Streams,
)
from embedarr.domain.exceptions import (
    DereferenceFailed,
    DiscoveryEmpty,
    HostExtractionFailed,
    NoPlayableStream,
    PageFetchError,
)
from embedarr.domain.ports.host_extractor import HostExtractorPort
from embedarr.infrastructure.common.urls import normalize_url, origin_of
from embedarr.infrastructure.streams.stream_sorter import (
    deduplicate,
    no_sources_stream,
    placeholder_stream,
)

# ---------------------------------------------------------------------------
# Protocols: what the pipeline needs from its collaborators.
# ---------------------------------------------------------------------------


class _Discovery(Protocol):
    def discover(self, html: str) -> list[ServerLink]: ...


class _Dereferencer(Protocol):
    async def dereference(
        self, url: str, page_url: str, headers: Mapping[str, str]
    ) -> str: ...


class _Dispatcher(Protocol):
    def dispatch(self, url: str) -> HostExtractorPort: ...


class _StreamSorter(Protocol):
    def sort(self, streams: list[ResolvedStream]) -> list[ResolvedStream]: ...


class _PipelineConfig(Protocol):
    """Resolver settings consumed by ResolveEpisodeUseCase."""

    base_url: str
    referer: str
    request_timeout_seconds: float


log = structlog.get_logger(__name__)


class ResolutionPipeline:
    """Resolves the servers of one episode page into ranked streams.

    Every discovered link is resolved independently under a shared
    semaphore and a per-link timeout; a broken link degrades to a
    placeholder stream and never affects its siblings.
    """

    def __init__(
        self,
        discovery: _Discovery,
        dereferencer: _Dereferencer,
        dispatch: _Dispatcher,
        sorter: _StreamSorter,
        *,
        max_concurrent_links: int = 8,
        link_timeout: float = 30.0,
    ) -> None:
        self._discovery = discovery
        self._dereferencer = dereferencer
        self._dispatch = dispatch
        self._sorter = sorter
        self._max_concurrent = max(1, max_concurrent_links)
        self._link_timeout = link_timeout

    async def resolve(
        self,
        html: str,
        base_url: str,
        headers: Mapping[str, str],
        page_url: str | None = None,
    ) -> list[ResolvedStream]:
        """Return the ranked, deduplicated streams of *html*.

        Never returns an empty list: when nothing playable was found the
        result is a single synthetic "no working sources" stream.
        """
        page_url = page_url or base_url
        try:
            links = self._discover(html)
            streams = await self._resolve_links(links, base_url, page_url, headers)
        except DiscoveryEmpty:
            log.info("resolve_no_links", page_url=page_url)
            return [no_sources_stream(page_url)]
        except NoPlayableStream as exc:
            log.info(
                "resolve_no_playable_streams",
                page_url=page_url,
                failed=exc.failed_count,
            )
            return [no_sources_stream(page_url, exc.failed_count)]

        ranked = self._sorter.sort(streams)
        log.info(
            "resolve_complete",
            page_url=page_url,
            links=len(links),
            streams=sum(1 for s in ranked if not s.is_placeholder),
            placeholders=sum(1 for s in ranked if s.is_placeholder),
        )
        return ranked

    def _discover(self, html: str) -> list[ServerLink]:
        links = self._discovery.discover(html)
        if not links:
            raise DiscoveryEmpty("no server links on page")
        return links

    async def _resolve_links(
        self,
        links: list[ServerLink],
        base_url: str,
        page_url: str,
        headers: Mapping[str, str],
    ) -> list[ResolvedStream]:
        """Resolve all *links* concurrently; deduplicated, in discovery order.

        Raises ``NoPlayableStream`` when only placeholders remain.
        """
        semaphore = asyncio.Semaphore(min(len(links), self._max_concurrent))

        async def _resolve_one(idx: int) -> tuple[int, list[ResolvedStream]]:
            link = links[idx]
            async with semaphore:
                url = normalize_url(link.raw_url, base_url)
                try:
                    return idx, await asyncio.wait_for(
                        self._resolve_link(link, url, page_url, headers),
                        timeout=self._link_timeout,
                    )
                except TimeoutError:
                    log.warning(
                        "link_resolve_timeout",
                        server=link.label,
                        url=url,
                        timeout=self._link_timeout,
                    )
                    return idx, [placeholder_stream(url, link.label, "timed out")]
                except HostExtractionFailed as exc:
                    log.warning(
                        "link_resolve_failed",
                        server=link.label,
                        url=url,
                        extractor=exc.extractor,
                        exc_info=True,
                    )
                    return idx, [placeholder_stream(url, link.label, "extractor error")]
                except Exception:
                    log.warning(
                        "link_resolve_crashed",
                        server=link.label,
                        url=url,
                        exc_info=True,
                    )
                    return idx, [placeholder_stream(url, link.label, "unexpected error")]

        results = await asyncio.gather(*(_resolve_one(i) for i in range(len(links))))

        collected: list[ResolvedStream] = []
        for _, streams in sorted(results, key=lambda r: r[0]):
            collected.extend(streams)
        unique = deduplicate(collected)

        if not any(not s.is_placeholder for s in unique):
            raise NoPlayableStream(len(unique))
        return unique

    async def _resolve_link(
        self,
        link: ServerLink,
        url: str,
        page_url: str,
        headers: Mapping[str, str],
    ) -> list[ResolvedStream]:
        try:
            target = await self._dereferencer.dereference(url, page_url, headers)
        except DereferenceFailed as exc:
            return [placeholder_stream(url, link.label, str(exc))]

        extractor = self._dispatch.dispatch(target)
        log.debug("link_dispatched", server=link.label, url=target, extractor=extractor.name)
        try:
            outcome = await extractor.extract(target, headers, link.label)
        except Exception as exc:
            raise HostExtractionFailed(extractor.name, str(exc) or type(exc).__name__) from exc
        return _outcome_streams(outcome, target, link.label)


def _outcome_streams(
    outcome: ExtractionOutcome,
    url: str,
    label: str,
) -> list[ResolvedStream]:
    if isinstance(outcome, Streams):
        return list(outcome.streams)
    if isinstance(outcome, Failed):
        return [placeholder_stream(url, label, outcome.reason)]
    return []


class ResolveEpisodeUseCase:
    """Fetches an episode page and resolves its streams."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        pipeline: ResolutionPipeline,
        config: _PipelineConfig,
    ) -> None:
        self._http = http_client
        self._pipeline = pipeline
        self._config = config

    def request_headers(self) -> dict[str, str]:
        """Headers sent to the content site and passed to host extractors."""
        return {"Referer": self._config.referer}

    async def execute(self, page_url: str) -> list[ResolvedStream]:
        html = await self.fetch_page(page_url)
        return await self.resolve_html(html, page_url)

    async def resolve_html(self, html: str, page_url: str) -> list[ResolvedStream]:
        """Resolve already fetched page *html* (e.g. supplied by the caller)."""
        base_url = origin_of(page_url) or self._config.base_url
        return await self._pipeline.resolve(
            html,
            base_url,
            self.request_headers(),
            page_url=page_url,
        )

    async def fetch_page(self, page_url: str) -> str:
        try:
            resp = await self._http.get(
                page_url,
                headers=self.request_headers(),
                follow_redirects=True,
                timeout=self._config.request_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            log.warning("episode_page_timeout", url=page_url)
            raise PageFetchError(f"timed out fetching {page_url}") from exc
        except httpx.HTTPError as exc:
            log.warning("episode_page_unreachable", url=page_url, error=str(exc))
            raise PageFetchError(f"could not fetch {page_url}: {exc}") from exc

        if resp.status_code != 200:
            log.warning("episode_page_http_error", status=resp.status_code, url=page_url)
            raise PageFetchError(f"{page_url} returned HTTP {resp.status_code}")
        return resp.text
