"""Best-effort decoding of opaque player API payloads.

A payload is base64 text whose decoded body is either a JSON object
(``{url?, file?, sources?: [{file, label?, type?}]}``) or unstructured text
containing absolute media URLs.  Decoding is an ordered ladder of attempts;
each returns ``None``/``[]`` when it does not apply and the first attempt
with a non-empty result wins.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

_M3U8_RE = re.compile(r"""https?://[^\s"'<>]+\.m3u8[^\s"'<>]*""", re.IGNORECASE)
_MP4_RE = re.compile(r"""https?://[^\s"'<>]+\.mp4[^\s"'<>]*""", re.IGNORECASE)
_ANY_URL_RE = re.compile(r"""https?://[^\s"'<>]+""", re.IGNORECASE)

_LIKELY_MEDIA_MARKERS = ("video", "stream", "cdn", "cloud", "storage", "bucket")


@dataclass(frozen=True)
class DecodedSource:
    """One stream URL recovered from a payload."""

    url: str
    label: str | None = None
    type: str | None = None


DecodeAttempt = Callable[[str], "list[DecodedSource] | None"]


def decode_base64_text(encoded: str) -> str | None:
    """Decode a trimmed base64 blob to text.

    Whitespace is ignored and missing padding is tolerated.  Returns
    ``None`` for anything that is not valid base64.
    """
    compact = "".join(encoded.split())
    if not compact:
        return None
    compact += "=" * (-len(compact) % 4)
    try:
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return None
    return raw.decode("utf-8", errors="replace")


def parse_structured(text: str) -> list[DecodedSource] | None:
    """Read ``url``, ``file`` and ``sources[].file`` from a JSON object."""
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    found: list[DecodedSource] = []
    for key in ("url", "file"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            found.append(DecodedSource(url=value.strip()))

    sources = data.get("sources")
    if isinstance(sources, list):
        for source in sources:
            if not isinstance(source, dict):
                continue
            file = source.get("file")
            if not isinstance(file, str) or not file.strip():
                continue
            label = source.get("label")
            kind = source.get("type")
            found.append(
                DecodedSource(
                    url=file.strip(),
                    label=label if isinstance(label, str) else None,
                    type=kind if isinstance(kind, str) else None,
                )
            )
    return found


def scan_media_urls(text: str) -> list[DecodedSource]:
    """All absolute ``.m3u8`` URLs, followed by all absolute ``.mp4`` URLs."""
    urls = [m.group(0) for m in _M3U8_RE.finditer(text)]
    urls.extend(m.group(0) for m in _MP4_RE.finditer(text))
    return [DecodedSource(url=u) for u in dict.fromkeys(urls)]


def is_likely_media_url(url: str) -> bool:
    lowered = url.lower()
    return any(marker in lowered for marker in _LIKELY_MEDIA_MARKERS)


def scan_likely_media_urls(text: str) -> list[DecodedSource]:
    """Last resort: any absolute URL that looks like it serves media."""
    urls = [m.group(0) for m in _ANY_URL_RE.finditer(text) if is_likely_media_url(m.group(0))]
    return [DecodedSource(url=u) for u in dict.fromkeys(urls)]


DEFAULT_DECODE_LADDER: tuple[DecodeAttempt, ...] = (
    parse_structured,
    scan_media_urls,
    scan_likely_media_urls,
)


def best_effort_decode(
    text: str,
    attempts: Sequence[DecodeAttempt] = DEFAULT_DECODE_LADDER,
) -> list[DecodedSource]:
    """Run *attempts* in order and return the first non-empty result."""
    for attempt in attempts:
        result = attempt(text)
        if result:
            return result
    return []
