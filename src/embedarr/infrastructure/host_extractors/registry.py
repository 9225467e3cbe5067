"""Host dispatch table: maps a dereferenced URL to its host extractor."""

from __future__ import annotations

import httpx
import structlog

from embedarr.domain.entities.streams import HostRule
from embedarr.domain.ports.host_extractor import HostExtractorPort
from embedarr.infrastructure.host_extractors.direct import DirectExtractor
from embedarr.infrastructure.host_extractors.doodstream import DoodStreamExtractor
from embedarr.infrastructure.host_extractors.embed_page import (
    create_embed_page_extractors,
)
from embedarr.infrastructure.host_extractors.generic import GenericExtractor
from embedarr.infrastructure.host_extractors.p2pplay import (
    DEFAULT_API_HOST,
    P2PPlayExtractor,
)
from embedarr.infrastructure.host_extractors.streamtape import StreamtapeExtractor

log = structlog.get_logger(__name__)

# Order matters: the first matching rule wins.
DEFAULT_HOST_RULES: tuple[HostRule, ...] = (
    HostRule(
        "streamwish",
        ("streamwish", "strwish", "wishfast", "awish", "streamplay"),
        "streamwish",
    ),
    HostRule("vidhide", ("vidhide", "vidhidevip", "vidspeeds"), "vidhide"),
    HostRule("streamtape", ("streamtape", "strtape", "stape"), "streamtape"),
    HostRule("mixdrop", ("mixdrop", "mixdrp"), "mixdrop"),
    HostRule("filemoon", ("filemoon", "moonplayer"), "filemoon"),
    HostRule("doodstream", ("dood", "doodstream", "ds2play", "ds2video"), "doodstream"),
    HostRule("mp4upload", ("mp4upload",), "mp4upload"),
    HostRule("streamlare", ("streamlare", "slwatch"), "streamlare"),
    HostRule("p2pplay", ("p2pplay",), "p2pplay"),
    HostRule("direct", ("storage.googleapis.com",), "direct"),
)


class HostDispatchTable:
    """Dispatches URLs to host extractors via an ordered rule list.

    URLs matching no rule (or a rule whose extractor is not registered) go
    to the *fallback* extractor.
    """

    def __init__(
        self,
        rules: tuple[HostRule, ...] | list[HostRule],
        extractors: list[HostExtractorPort],
        fallback: HostExtractorPort,
    ) -> None:
        self._rules = tuple(rules)
        self._extractors: dict[str, HostExtractorPort] = {}
        self._fallback = fallback
        for extractor in extractors:
            self.register(extractor)

        missing = [r.extractor_id for r in self._rules if r.extractor_id not in self._extractors]
        if missing:
            log.warning("host_rules_without_extractor", extractor_ids=missing)

    def register(self, extractor: HostExtractorPort) -> None:
        self._extractors[extractor.name] = extractor
        log.debug("host_extractor_registered", extractor=extractor.name)

    @property
    def rules(self) -> tuple[HostRule, ...]:
        return self._rules

    @property
    def fallback(self) -> HostExtractorPort:
        return self._fallback

    @property
    def supported_hosts(self) -> list[str]:
        """Names of all registered (non-fallback) extractors."""
        return list(self._extractors.keys())

    def match(self, url: str) -> HostRule | None:
        """First rule matching *url*, or ``None``."""
        for rule in self._rules:
            if rule.matches(url):
                return rule
        return None

    def dispatch(self, url: str) -> HostExtractorPort:
        """Extractor responsible for *url*."""
        rule = self.match(url)
        if rule is None:
            return self._fallback
        extractor = self._extractors.get(rule.extractor_id)
        if extractor is None:
            log.warning("host_extractor_missing", rule=rule.name, url=url)
            return self._fallback
        return extractor

    def provider_fragments(self) -> tuple[str, ...]:
        """All URL fragments of all rules, for script scanning."""
        return tuple(dict.fromkeys(f for rule in self._rules for f in rule.fragments))


def build_default_dispatch_table(
    http_client: httpx.AsyncClient,
    *,
    timeout: float = 15.0,
    p2pplay_api_host: str = DEFAULT_API_HOST,
    default_referrer: str = "",
    rules: tuple[HostRule, ...] = DEFAULT_HOST_RULES,
) -> HostDispatchTable:
    """Dispatch table with every built-in extractor registered."""
    extractors: list[HostExtractorPort] = [
        *create_embed_page_extractors(http_client, timeout=timeout),
        StreamtapeExtractor(http_client, timeout=timeout),
        DoodStreamExtractor(http_client, timeout=timeout),
        P2PPlayExtractor(
            http_client,
            api_host=p2pplay_api_host,
            default_referrer=default_referrer,
            timeout=timeout,
        ),
        DirectExtractor(),
    ]
    return HostDispatchTable(
        rules,
        extractors,
        fallback=GenericExtractor(http_client, timeout=timeout),
    )
