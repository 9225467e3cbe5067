"""Player source extraction shared by the embed-page extractors.

Embed pages of JWPlayer-style hosts carry their stream URLs either in
plain player config, in Dean Edwards packed JavaScript, or as bare quoted
HLS/MP4 URLs.  ``extract_player_sources`` tries these in order of
specificity and returns every ``(url, label)`` pair of the first layer that
produced anything.
"""

from __future__ import annotations

import re

_PACKED_START_RE = re.compile(
    r"eval\s*\(\s*function\s*\(\s*p\s*,\s*a\s*,\s*c\s*,\s*k\s*,\s*e\s*,\s*d\s*\)"
)
_PACKED_ARGS_RE = re.compile(
    r"}\('(.*?)',\s*(\d+),\s*(\d+),\s*'([^']*)'\s*\.split\('\|'\)",
    re.DOTALL,
)

_HLS_KEY_RE = re.compile(r'"hls\d"\s*:\s*"(https?://[^"]+)"')
_SOURCES_BLOCK_RE = re.compile(r"sources\s*:\s*\[(.*?)\]", re.DOTALL)
_SOURCE_OBJ_RE = re.compile(r"\{([^{}]*)\}")
_FILE_RE = re.compile(r"""(?:file|src)\s*:\s*["']((?:https?:)?//[^"']+)["']""")
_LABEL_RE = re.compile(r"""label\s*:\s*["']([^"']*)["']""")
_WURL_RE = re.compile(r"""wurl\s*=\s*["']((?:https?:)?//[^"']+)["']""")
_SOURCE_KEY_RE = re.compile(
    r"""(?:file|source|src)\s*:\s*["'](https?://[^"']+\.(?:m3u8|mp4)[^"']*)["']"""
)
_QUOTED_MEDIA_RE = re.compile(r"""["'](https?://[^"']+\.(?:m3u8|mp4)[^"']*)["']""")

_JUNK_MARKERS = ("thumbnail", "track", ".vtt", ".jpg", ".png")

PlayerSource = tuple[str, str | None]


def unpack_p_a_c_k(packed: str) -> str | None:
    """Unpack Dean Edwards packed JavaScript.

    Format: eval(function(p,a,c,k,e,d){...}('payload',base,count,'dict'.split('|')))

    Base-N encoded tokens in the payload are replaced with words from the
    dictionary.
    """
    match = _PACKED_ARGS_RE.search(packed)
    if not match:
        return None

    payload = match.group(1)
    base = int(match.group(2))
    count = int(match.group(3))
    keywords = match.group(4).split("|")

    if len(keywords) < count:
        keywords.extend([""] * (count - len(keywords)))

    def _replace_word(m: re.Match[str]) -> str:
        word = m.group(0)
        try:
            index = int(word, base)
        except ValueError:
            return word
        if index < len(keywords) and keywords[index]:
            return keywords[index]
        return word

    return re.sub(r"\b\w+\b", _replace_word, payload)


def _is_junk(url: str) -> bool:
    lowered = url.lower()
    return any(marker in lowered for marker in _JUNK_MARKERS)


def _absolute(url: str) -> str:
    return f"https:{url}" if url.startswith("//") else url


def _from_player_config(js: str) -> list[PlayerSource]:
    """Sources from JWPlayer-like config (``sources:[{file, label}]``)."""
    normalized = js.replace("\\'", "'").replace('\\"', '"').replace("\\/", "/")
    found: list[PlayerSource] = []

    for m in _HLS_KEY_RE.finditer(normalized):
        found.append((m.group(1), None))

    for block in _SOURCES_BLOCK_RE.finditer(normalized):
        for obj in _SOURCE_OBJ_RE.finditer(block.group(1)):
            file_match = _FILE_RE.search(obj.group(1))
            if not file_match:
                continue
            label_match = _LABEL_RE.search(obj.group(1))
            found.append(
                (_absolute(file_match.group(1)), label_match.group(1) if label_match else None)
            )

    wurl = _WURL_RE.search(normalized)
    if wurl:
        found.append((_absolute(wurl.group(1)), None))

    if not found:
        for m in _SOURCE_KEY_RE.finditer(normalized):
            found.append((m.group(1), None))

    return [(url, label) for url, label in found if not _is_junk(url)]


def _unpacked_blocks(html: str) -> list[str]:
    blocks: list[str] = []
    for pm in _PACKED_START_RE.finditer(html):
        chunk = html[pm.start() : pm.start() + 65536]
        unpacked = unpack_p_a_c_k(chunk)
        if unpacked:
            blocks.append(unpacked)
    return blocks


def extract_player_sources(html: str) -> list[PlayerSource]:
    """Extract ``(url, label)`` pairs from an embed page.

    Layers, first non-empty wins:
    1. Player config in the page source (``hls2``, ``sources``, ``wurl``)
    2. Player config inside packed JavaScript blocks
    3. Any quoted absolute HLS/MP4 URL

    Duplicate URLs are dropped, first occurrence kept.
    """
    sources = _from_player_config(html)
    if not sources:
        for block in _unpacked_blocks(html):
            sources.extend(_from_player_config(block))
    if not sources:
        sources = [
            (m.group(1), None)
            for m in _QUOTED_MEDIA_RE.finditer(html)
            if not _is_junk(m.group(1))
        ]

    unique: dict[str, str | None] = {}
    for url, label in sources:
        unique.setdefault(url, label)
    return list(unique.items())
