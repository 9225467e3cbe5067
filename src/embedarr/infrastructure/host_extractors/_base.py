"""Helpers shared by host extractors."""

from __future__ import annotations

from collections.abc import Mapping

from embedarr.domain.entities.streams import QualityTag, ResolvedStream
from embedarr.infrastructure.streams.quality import classify_quality

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


def build_stream(
    playback_url: str,
    label_prefix: str,
    *,
    source_url: str,
    quality_hint: str | None = None,
    quality: QualityTag | None = None,
    headers: Mapping[str, str] | None = None,
) -> ResolvedStream:
    """Build a ``ResolvedStream`` labelled ``"{prefix} - {quality}"``.

    Quality comes from *quality*, else from *quality_hint* (e.g. a player
    source label), else from the playback URL itself.
    """
    if quality is None:
        quality = classify_quality(quality_hint or playback_url)
    return ResolvedStream(
        playback_url=playback_url,
        label=f"{label_prefix} - {quality.label}",
        quality=quality,
        source_url=source_url,
        headers=dict(headers or {}),
    )


def request_headers(
    headers: Mapping[str, str],
    extra: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Copy caller headers, ensure a User-Agent and add *extra* headers."""
    extra = extra or {}
    overridden = {k.lower() for k in extra}
    merged = {k: v for k, v in headers.items() if k.lower() not in overridden}
    if not any(k.lower() == "user-agent" for k in merged):
        merged["User-Agent"] = BROWSER_UA
    merged.update(extra)
    return merged
