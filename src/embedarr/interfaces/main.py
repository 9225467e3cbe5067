from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response

from embedarr.infrastructure.config import AppConfig
from embedarr.interfaces.api.resolve.router import router as resolve_router
from embedarr.interfaces.app_state import AppState
from embedarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def build_app(config: AppConfig) -> FastAPI:
    """Create the FastAPI app; only config lives in state until lifespan() runs."""
    app = FastAPI(
        title="Embedarr",
        description="Resolves episode pages into ranked, playable video streams",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    app.include_router(resolve_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(request: Request, call_next) -> Response:
        # Every event logged while handling the request carries its id
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start = time.perf_counter()
        status_code = 500
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
                status_code = response.status_code
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                log.info(
                    "http_request",
                    method=request.method,
                    path=request.url.path,
                    status_code=status_code,
                    duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
                    client_host=(request.client.host if request.client else None),
                )

    return app
