"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from embedarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from embedarr.application.use_cases import ResolveEpisodeUseCase
    from embedarr.infrastructure.host_extractors import HostDispatchTable


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    dispatch_table: HostDispatchTable

    # Application Services
    resolve_uc: ResolveEpisodeUseCase
