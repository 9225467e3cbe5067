"""Port for extracting playable streams from a third-party host URL."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from embedarr.domain.entities.streams import ExtractionOutcome


@runtime_checkable
class HostExtractorPort(Protocol):
    """Resolves a host embed URL to zero or more playable streams.

    Implementations handle host-specific extraction (player config parsing,
    token building, API calls, etc.) and must never raise for expected
    failures: network and parse errors collapse into ``Failed`` or
    ``Empty``.
    """

    @property
    def name(self) -> str:
        """Extractor id this implementation is registered under."""
        ...

    async def extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        """Extract streams from *url*, labelling them with *label_prefix*."""
        ...
