"""Coarse quality classification from URLs and source labels."""

from __future__ import annotations

from embedarr.domain.entities.streams import QualityTag

# Checked in order; the first tag with a matching marker wins.
_QUALITY_MARKERS: tuple[tuple[QualityTag, tuple[str, ...]], ...] = (
    (QualityTag.P1080, ("1080", "fullhd")),
    (QualityTag.P720, ("720", "hd")),
    (QualityTag.P480, ("480",)),
    (QualityTag.P360, ("360",)),
    (QualityTag.P240, ("240",)),
    (QualityTag.AUTO, ("master", "index")),
)


def classify_quality(text: str) -> QualityTag:
    """Map a URL or label to a ``QualityTag`` by case-insensitive markers.

    Markers are plain substrings, so ``"hd"`` also matches ``"hdrip"``
    or ``"hd-cdn"``.
    """
    lowered = text.lower()
    for tag, markers in _QUALITY_MARKERS:
        if any(marker in lowered for marker in markers):
            return tag
    return QualityTag.UNKNOWN
