"""Tests for URL normalization and origin helpers."""

from __future__ import annotations

import pytest

from embedarr.infrastructure.common.urls import (
    hostname_of,
    normalize_url,
    origin_of,
    same_site,
)

BASE = "https://site.example"


class TestNormalizeUrl:
    def test_absolute_unchanged(self) -> None:
        url = "https://host.example/e/abc?x=1"
        assert normalize_url(url, BASE) == url

    def test_http_prefix_case_insensitive(self) -> None:
        assert normalize_url("HTTP://host.example/a", BASE) == "HTTP://host.example/a"

    def test_scheme_relative_gets_https(self) -> None:
        assert normalize_url("//host/a.m3u8?x=1", BASE) == "https://host/a.m3u8?x=1"

    def test_relative_path(self) -> None:
        assert normalize_url("embed/1", BASE) == "https://site.example/embed/1"

    @pytest.mark.parametrize("raw", ["/embed/1", "///embed/1", "embed/1"])
    def test_leading_slash_count_irrelevant(self, raw: str) -> None:
        assert normalize_url(raw, BASE) == "https://site.example/embed/1"

    def test_base_trailing_slash(self) -> None:
        assert normalize_url("/embed/1", BASE + "/") == "https://site.example/embed/1"

    def test_whitespace_trimmed(self) -> None:
        assert normalize_url("  //host/a.mp4 ", BASE) == "https://host/a.mp4"

    @pytest.mark.parametrize(
        "raw",
        [
            "https://host.example/a",
            "//host.example/a",
            "/embed/1",
            "embed/1",
            "//cdn.example/v/master.m3u8?token=abc",
        ],
    )
    def test_idempotent(self, raw: str) -> None:
        once = normalize_url(raw, BASE)
        assert normalize_url(once, BASE) == once


class TestOriginHelpers:
    def test_origin_of(self) -> None:
        assert origin_of("https://Site.Example:8443/a/b?c=d") == "https://site.example:8443"

    def test_origin_of_relative(self) -> None:
        assert origin_of("/a/b") == ""

    def test_hostname_strips_www(self) -> None:
        assert hostname_of("https://www.site.example/a") == "site.example"

    def test_hostname_of_garbage(self) -> None:
        assert hostname_of("not a url") == ""

    def test_same_site(self) -> None:
        assert same_site("https://www.site.example/embed/1", "https://site.example/ep-1")
        assert not same_site("https://other.example/embed/1", "https://site.example/ep-1")

    def test_same_site_requires_host(self) -> None:
        assert not same_site("/embed/1", "/ep-1")
