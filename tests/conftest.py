"""Shared test fixtures for the Embedarr test suite."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import pytest

from embedarr.domain.entities.streams import (
    ExtractionOutcome,
    QualityTag,
    ResolvedStream,
    Streams,
)
from embedarr.infrastructure.config.schema import ResolverConfig

# ---------------------------------------------------------------------------
# Fake host extractor
# ---------------------------------------------------------------------------


@dataclass
class FakeExtractor:
    """HostExtractorPort stand-in returning a canned outcome per URL.

    *outcomes* maps a URL to an outcome or to an exception to raise; URLs
    without an entry yield one stream whose playback URL is the URL itself.
    """

    name: str = "fake"
    outcomes: dict[str, ExtractionOutcome | Exception] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def extract(
        self,
        url: str,
        headers: Mapping[str, str],
        label_prefix: str,
    ) -> ExtractionOutcome:
        self.calls.append((url, label_prefix))
        outcome = self.outcomes.get(url)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            return outcome
        return Streams(
            (ResolvedStream(playback_url=url, label=f"{label_prefix} - Unknown"),)
        )


@pytest.fixture()
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture()
def make_extractor() -> Callable[..., FakeExtractor]:
    """Factory for named FakeExtractors with canned outcomes."""

    def _make(
        name: str = "fake",
        outcomes: dict[str, ExtractionOutcome | Exception] | None = None,
    ) -> FakeExtractor:
        return FakeExtractor(name=name, outcomes=dict(outcomes or {}))

    return _make


# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_stream() -> Callable[..., ResolvedStream]:
    """Factory for ResolvedStream with sensible defaults."""

    def _make(
        url: str = "https://cdn.example/v.m3u8",
        quality: QualityTag = QualityTag.UNKNOWN,
        label: str = "Server",
        *,
        placeholder: bool = False,
    ) -> ResolvedStream:
        return ResolvedStream(
            playback_url=url,
            label=label,
            quality=quality,
            source_url=url,
            is_placeholder=placeholder,
        )

    return _make


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def resolver_config() -> ResolverConfig:
    """ResolverConfig pointing at a test site."""
    return ResolverConfig(base_url="https://site.example/")
