"""URL helpers: normalization against a base URL and origin checks."""

from __future__ import annotations

from urllib.parse import urlparse


def normalize_url(raw: str, base_url: str) -> str:
    """Turn a relative or scheme-less link into an absolute URL.

    - ``http...`` links are returned unchanged.
    - ``//host/path`` links get an ``https:`` scheme.
    - Anything else is treated as relative to *base_url*; leading slashes
      are trimmed so exactly one slash separates base and path.

    Applying the function twice yields the same result as applying it once.
    """
    raw = raw.strip()
    if raw[:4].lower() == "http":
        return raw
    if raw.startswith("//"):
        return f"https:{raw}"
    return f"{base_url.rstrip('/')}/{raw.lstrip('/')}"


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` of *url*, or ``""`` if unparseable."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return ""
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def hostname_of(url: str) -> str:
    """Lower-cased hostname of *url* without a ``www.`` prefix."""
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return hostname.removeprefix("www.")


def same_site(url: str, other: str) -> bool:
    """True when both URLs point at the same host (``www.`` ignored)."""
    host = hostname_of(url)
    return bool(host) and host == hostname_of(other)
