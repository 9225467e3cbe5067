"""Direct links (cloud storage buckets) that are playable as-is."""

from __future__ import annotations

from collections.abc import Mapping

from embedarr.domain.entities.streams import ExtractionOutcome, Streams
from embedarr.infrastructure.host_extractors._base import build_stream


class DirectExtractor:
    """Returns the URL itself as the stream; no network access."""

    @property
    def name(self) -> str:
        return "direct"

    async def extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        stream = build_stream(
            url,
            f"{label_prefix} Direct Stream".strip(),
            source_url=url,
        )
        return Streams((stream,))
