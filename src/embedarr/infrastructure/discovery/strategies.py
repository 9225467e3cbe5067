"""Server discovery on episode pages.

Episode pages expose their servers in several markup dialects.  Each
dialect is handled by one strategy; ``DiscoveryChain`` runs them in a fixed
order and stops at the first strategy that yields a non-blank link, so the
most specific markup always wins over generic fallbacks.

Strategies return a label-keyed mapping.  A duplicate label overwrites the
earlier entry (last write wins); URLs are not deduplicated here.
"""

from __future__ import annotations

import re
from typing import Protocol

import structlog
from bs4 import BeautifulSoup

from embedarr.domain.entities.streams import ServerLink
from embedarr.infrastructure.common.html_selectors import (
    first_attr,
    iframe_source,
    own_text,
    parse_html,
    select_items,
)

log = structlog.get_logger(__name__)


class DiscoveryStrategy(Protocol):
    """One markup heuristic for finding server links."""

    @property
    def name(self) -> str: ...

    def discover(self, soup: BeautifulSoup) -> dict[str, str]:
        """Return ``{label: raw_url}`` for every server found."""
        ...


class ServerListStrategy:
    """``.muti_link`` server lists: ``<li data-video="...">Label</li>``."""

    selectors: tuple[str, ...] = (".muti_link li", "ul.muti_link li")

    @property
    def name(self) -> str:
        return "server_list"

    def discover(self, soup: BeautifulSoup) -> dict[str, str]:
        links: dict[str, str] = {}
        for item in select_items(soup, *self.selectors):
            label = own_text(item) or item.get_text(" ", strip=True)
            url = first_attr(item, "data-video")
            if label and url:
                links[label] = url
        return links


class AlternativeListStrategy:
    """Other server list dialects carrying the URL in ``data-*`` attributes.

    Attribute names are checked in priority order on the ``<li>`` first and
    then on its nested ``<a>``.
    """

    selectors: tuple[str, ...] = (
        ".server-list li",
        "ul.list-server-items li",
        ".anime_muti_link li",
    )
    url_attrs: tuple[str, ...] = ("data-video", "data-link")

    @property
    def name(self) -> str:
        return "alternative_list"

    def discover(self, soup: BeautifulSoup) -> dict[str, str]:
        links: dict[str, str] = {}
        for item in select_items(soup, ", ".join(self.selectors)):
            anchor = item.select_one("a")
            label = (
                (anchor.get_text(" ", strip=True) if anchor else "")
                or own_text(item)
                or "Server"
            )
            url = first_attr(item, *self.url_attrs)
            if not url and anchor is not None:
                url = first_attr(anchor, *self.url_attrs)
            if url:
                links[label] = url
        return links


class IframeStrategy:
    """Bare player iframes (``src`` or lazy ``data-src``)."""

    label = "Standard Server"

    @property
    def name(self) -> str:
        return "iframe"

    def discover(self, soup: BeautifulSoup) -> dict[str, str]:
        links: dict[str, str] = {}
        for iframe in soup.select("iframe[src], iframe[data-src]"):
            src = iframe_source(iframe)
            if not src:
                continue
            label = self.label if not links else f"{self.label} {len(links) + 1}"
            links[label] = src
        return links


_SCRIPT_URL_RE = re.compile(r"""(?:https?:)?//[^\s"'<>\\]+""", re.IGNORECASE)
_MEDIA_URL_RE = re.compile(
    r"""https?://[^\s"'<>\\]+\.(?:m3u8|mp4)[^\s"'<>\\]*""", re.IGNORECASE
)


class ScriptScanStrategy:
    """Last resort: URLs hard-coded in inline ``<script>`` blocks.

    Keeps URLs containing a known provider fragment plus any direct
    ``.m3u8`` / ``.mp4`` URL.
    """

    label = "Script Source"

    def __init__(self, provider_fragments: tuple[str, ...]) -> None:
        self._fragments = tuple(f.lower() for f in provider_fragments)

    @property
    def name(self) -> str:
        return "script_scan"

    def discover(self, soup: BeautifulSoup) -> dict[str, str]:
        found: list[str] = []
        for script in soup.find_all("script"):
            if script.get("src"):
                continue
            text = script.string or script.get_text()
            if not text:
                continue
            for match in _SCRIPT_URL_RE.finditer(text):
                url = match.group(0)
                if any(f in url.lower() for f in self._fragments):
                    found.append(url)
            found.extend(m.group(0) for m in _MEDIA_URL_RE.finditer(text))

        links: dict[str, str] = {}
        for url in dict.fromkeys(found):
            links[f"{self.label} {len(links) + 1}"] = url
        return links


class DiscoveryChain:
    """Runs discovery strategies in order until one finds a link."""

    def __init__(self, strategies: list[DiscoveryStrategy]) -> None:
        self._strategies = list(strategies)

    @property
    def strategies(self) -> list[DiscoveryStrategy]:
        return list(self._strategies)

    def discover(self, html: str) -> list[ServerLink]:
        """Return the server links of the first productive strategy.

        Returns an empty list when no strategy matches.
        """
        soup = parse_html(html)
        for strategy in self._strategies:
            found = strategy.discover(soup)
            links = [
                ServerLink(label=label, raw_url=url)
                for label, url in found.items()
                if url and url.strip()
            ]
            if links:
                log.debug(
                    "servers_discovered",
                    strategy=strategy.name,
                    count=len(links),
                )
                return links
        log.info("no_servers_discovered", strategies=len(self._strategies))
        return []


def default_strategies(
    provider_fragments: tuple[str, ...] = (),
    *,
    script_scan: bool = True,
) -> list[DiscoveryStrategy]:
    """The standard strategy order, optionally without the script scan."""
    strategies: list[DiscoveryStrategy] = [
        ServerListStrategy(),
        AlternativeListStrategy(),
        IframeStrategy(),
    ]
    if script_scan:
        strategies.append(ScriptScanStrategy(provider_fragments))
    return strategies
