"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from embedarr.application.use_cases import ResolutionPipeline, ResolveEpisodeUseCase
from embedarr.infrastructure.common.urls import hostname_of
from embedarr.infrastructure.config.schema import AppConfig
from embedarr.infrastructure.discovery import (
    DiscoveryChain,
    EmbedDereferencer,
    default_strategies,
)
from embedarr.infrastructure.host_extractors import (
    HostDispatchTable,
    build_default_dispatch_table,
)
from embedarr.infrastructure.streams import StreamSorter
from embedarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Shared client for the content site and every host extractor."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )


def build_dispatch_table(
    config: AppConfig, http_client: httpx.AsyncClient
) -> HostDispatchTable:
    resolver = config.resolver
    return build_default_dispatch_table(
        http_client,
        timeout=resolver.request_timeout_seconds,
        p2pplay_api_host=resolver.p2pplay_api_host,
        default_referrer=hostname_of(resolver.base_url),
    )


def build_resolve_use_case(
    config: AppConfig,
    http_client: httpx.AsyncClient,
    dispatch_table: HostDispatchTable | None = None,
) -> ResolveEpisodeUseCase:
    """Wire discovery, dereferencing, dispatch and ranking into the use case."""
    resolver = config.resolver
    dispatch_table = dispatch_table or build_dispatch_table(config, http_client)

    discovery = DiscoveryChain(
        default_strategies(
            dispatch_table.provider_fragments(),
            script_scan=resolver.script_scan_enabled,
        )
    )
    dereferencer = EmbedDereferencer(
        http_client,
        embed_path_markers=tuple(resolver.embed_path_markers),
        shortener_domains=tuple(resolver.shortener_domains),
        timeout=resolver.request_timeout_seconds,
        redirect_cache_ttl=resolver.redirect_cache_ttl_seconds,
    )
    pipeline = ResolutionPipeline(
        discovery,
        dereferencer,
        dispatch_table,
        StreamSorter(),
        max_concurrent_links=resolver.max_concurrent_links,
        link_timeout=resolver.link_timeout_seconds,
    )
    return ResolveEpisodeUseCase(
        http_client=http_client,
        pipeline=pipeline,
        config=resolver,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. HTTP Client (required by every extractor)
        2. Host dispatch table
        3. Resolve use case (discovery chain, dereferencer, pipeline)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) HTTP client
    state.http_client = build_http_client(config)
    log.info(
        "http_client_initialized",
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
    )

    try:
        # 2) Host dispatch table
        state.dispatch_table = build_dispatch_table(config, state.http_client)
        log.info(
            "host_extractors_registered",
            hosts=state.dispatch_table.supported_hosts,
        )

        # 3) Use case
        state.resolve_uc = build_resolve_use_case(
            config, state.http_client, state.dispatch_table
        )
        log.info(
            "resolver_initialized",
            base_url=config.resolver.base_url,
            max_concurrent_links=config.resolver.max_concurrent_links,
        )

        log.info("app_startup_complete")
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
