"""Domain entities for episode stream resolution.

Pure value objects with no framework dependencies, no I/O.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType


class QualityTag(IntEnum):
    """Coarse stream quality (higher value = ranked first)."""

    UNKNOWN = 0
    AUTO = 10
    P240 = 20
    P360 = 30
    P480 = 40
    P720 = 50
    P1080 = 60

    @property
    def label(self) -> str:
        """Human readable tag, e.g. ``"720p"`` or ``"Auto"``."""
        return _QUALITY_LABELS[self]


_QUALITY_LABELS: dict[QualityTag, str] = {
    QualityTag.UNKNOWN: "Unknown",
    QualityTag.AUTO: "Auto",
    QualityTag.P240: "240p",
    QualityTag.P360: "360p",
    QualityTag.P480: "480p",
    QualityTag.P720: "720p",
    QualityTag.P1080: "1080p",
}


@dataclass(frozen=True)
class ServerLink:
    """A candidate server discovered on an episode page."""

    label: str  # Display name only, never used for routing
    raw_url: str  # As found in the markup (may be relative / scheme-less)


@dataclass(frozen=True)
class ResolvedStream:
    """A playable (or diagnostic placeholder) stream for one episode."""

    playback_url: str  # Dedup key
    label: str
    quality: QualityTag = QualityTag.UNKNOWN
    source_url: str = ""  # Embed / server URL the stream was resolved from
    # Required by the CDN; read-only and left out of the hash
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    is_placeholder: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass(frozen=True)
class HostRule:
    """Ordered dispatch rule: URL fragment match -> extractor id.

    A rule matches when any of its fragments occurs in the URL
    (case-insensitive).  Fragments are not exclusive between rules;
    the first registered rule wins.
    """

    name: str
    fragments: tuple[str, ...]
    extractor_id: str

    def matches(self, url: str) -> bool:
        lowered = url.lower()
        return any(fragment.lower() in lowered for fragment in self.fragments)


# ---------------------------------------------------------------------------
# Extraction outcome (sum type)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Streams:
    """Extractor found one or more streams."""

    streams: tuple[ResolvedStream, ...]


@dataclass(frozen=True)
class Failed:
    """Extractor could not resolve the URL; surfaced as a placeholder."""

    reason: str


@dataclass(frozen=True)
class Empty:
    """Extractor found nothing and has nothing to report."""


ExtractionOutcome = Streams | Failed | Empty
