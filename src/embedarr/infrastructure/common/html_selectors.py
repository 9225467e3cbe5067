"""CSS-selector-based HTML extraction helpers.

Thin wrappers around BeautifulSoup shared by the discovery strategies,
the embed dereferencer and the host extractors.  Selection functions accept
a primary selector and optional *fallback_selectors*; the first selector
that yields at least one match wins.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, NavigableString, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (lxml parser)."""
    return BeautifulSoup(html, "lxml")


def select_items(
    root: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
) -> list[Tag]:
    """Select elements via CSS with a fallback chain.

    Returns results from the **first** selector that matches at least one
    element.
    """
    for sel in (selector, *fallback_selectors):
        items = root.select(sel)
        if items:
            return items
    return []


def select_first(
    root: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
) -> Tag | None:
    """Return the first element matched by the first matching selector."""
    for sel in (selector, *fallback_selectors):
        match = root.select_one(sel)
        if match is not None:
            return match
    return None


def own_text(element: Tag) -> str:
    """Text directly inside *element*, ignoring descendant tags."""
    parts = [
        str(child) for child in element.children if isinstance(child, NavigableString)
    ]
    return " ".join("".join(parts).split())


def first_attr(element: Tag, *attrs: str) -> str:
    """Return the first non-blank attribute value among *attrs*."""
    for attr in attrs:
        val = element.get(attr)
        if isinstance(val, list):
            val = " ".join(val)
        if val and str(val).strip():
            return str(val).strip()
    return ""


def iframe_source(iframe: Tag) -> str:
    """``src`` of an iframe, falling back to lazy-loaded ``data-src``."""
    return first_attr(iframe, "src", "data-src")
