"""Deduplication, ranking and placeholder construction for resolved streams."""

from __future__ import annotations

from embedarr.domain.entities.streams import QualityTag, ResolvedStream

NO_SOURCES_LABEL = "No working sources found"


def placeholder_stream(url: str, label: str, reason: str) -> ResolvedStream:
    """Diagnostic stream reporting that *label* could not be resolved."""
    return ResolvedStream(
        playback_url=url,
        label=f"{label} ({reason})",
        quality=QualityTag.UNKNOWN,
        source_url=url,
        is_placeholder=True,
    )


def no_sources_stream(page_url: str, failed_count: int = 0) -> ResolvedStream:
    """Synthetic stream returned instead of an empty result list."""
    label = NO_SOURCES_LABEL
    if failed_count:
        noun = "server" if failed_count == 1 else "servers"
        label = f"{label} ({failed_count} {noun} failed)"
    return ResolvedStream(
        playback_url=page_url,
        label=label,
        quality=QualityTag.UNKNOWN,
        source_url=page_url,
        is_placeholder=True,
    )


def deduplicate(streams: list[ResolvedStream]) -> list[ResolvedStream]:
    """Drop streams whose ``playback_url`` was already seen (first one wins)."""
    seen: set[str] = set()
    result: list[ResolvedStream] = []
    for s in streams:
        if s.playback_url in seen:
            continue
        seen.add(s.playback_url)
        result.append(s)
    return result


class StreamSorter:
    """Ranks streams by quality tag, best first.

    Sorting is stable, so streams within one quality tier keep their
    discovery order.
    """

    def rank(self, stream: ResolvedStream) -> int:
        return int(stream.quality)

    def sort(self, streams: list[ResolvedStream]) -> list[ResolvedStream]:
        """Return a new list sorted descending by rank."""
        return sorted(streams, key=self.rank, reverse=True)
