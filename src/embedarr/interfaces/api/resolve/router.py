"""Stream resolution endpoint."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from embedarr.domain.entities.streams import ResolvedStream
from embedarr.domain.exceptions import PageFetchError
from embedarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["resolve"])


class ResolveRequest(BaseModel):
    """Episode page to resolve; *html* skips fetching the page."""

    page_url: str = Field(description="Absolute URL of the episode page.")
    html: str | None = Field(
        default=None,
        description="Already fetched page markup (optional).",
    )

    @field_validator("page_url")
    @classmethod
    def _validate_page_url(cls, v: str) -> str:
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("page_url must be an absolute http(s) URL")
        return v


class StreamModel(BaseModel):
    url: str
    label: str
    quality: str
    source_url: str
    headers: dict[str, str]
    placeholder: bool

    @classmethod
    def from_stream(cls, stream: ResolvedStream) -> "StreamModel":
        return cls(
            url=stream.playback_url,
            label=stream.label,
            quality=stream.quality.label,
            source_url=stream.source_url,
            headers=dict(stream.headers),
            placeholder=stream.is_placeholder,
        )


class ResolveResponse(BaseModel):
    streams: list[StreamModel]


@router.post("/api/v1/resolve", response_model=ResolveResponse)
async def resolve_episode(body: ResolveRequest, request: Request) -> ResolveResponse:
    """Resolve an episode page into ranked playable streams.

    The list is never empty: when nothing playable was found it holds a
    single placeholder stream reporting that.

    Raises:
        HTTPException(502): The episode page could not be fetched.
    """
    state = cast(AppState, request.app.state)
    log.info("resolve_request", page_url=body.page_url, html_supplied=body.html is not None)

    try:
        if body.html is not None:
            streams = await state.resolve_uc.resolve_html(body.html, body.page_url)
        else:
            streams = await state.resolve_uc.execute(body.page_url)
    except PageFetchError as e:
        log.warning("resolve_page_fetch_failed", page_url=body.page_url, error=str(e))
        raise HTTPException(status_code=502, detail=str(e)) from e

    return ResolveResponse(streams=[StreamModel.from_stream(s) for s in streams])
