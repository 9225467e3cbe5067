"""Tests for the server discovery strategies and the discovery chain."""

from __future__ import annotations

from unittest.mock import MagicMock

from embedarr.domain.entities.streams import ServerLink
from embedarr.infrastructure.common.html_selectors import parse_html
from embedarr.infrastructure.discovery.strategies import (
    AlternativeListStrategy,
    DiscoveryChain,
    IframeStrategy,
    ScriptScanStrategy,
    ServerListStrategy,
    default_strategies,
)

_SERVER_LIST = """
<div class="anime_muti_link">
  <ul class="muti_link">
    <li class="vidcdn" data-video="//streamwish.to/e/abc">Vidstreaming<span>Choose this server</span></li>
    <li data-video="https://streamtape.com/e/xyz">Streamtape</li>
    <li data-video="">Broken</li>
  </ul>
</div>
"""

_ALT_LIST = """
<ul class="list-server-items">
  <li data-link="//filemoon.sx/e/1"><a>FileMoon</a></li>
  <li><a data-video="https://mixdrop.co/e/2">MixDrop</a></li>
  <li data-video="//dood.to/e/3"></li>
</ul>
"""

_IFRAMES = """
<div class="player">
  <iframe src="//site.example/embed/1"></iframe>
  <iframe data-src="https://p2pplay.pro/#vid9"></iframe>
</div>
"""

_SCRIPT = """
<script src="https://site.example/app.js"></script>
<script>
  var player = {file: "https://filemoon.sx/e/zz"};
  var direct = "https://cdn.example/hls/master.m3u8?t=1";
  var noise = "https://analytics.example/collect";
</script>
"""


class TestServerListStrategy:
    def test_collects_labelled_links(self) -> None:
        found = ServerListStrategy().discover(parse_html(_SERVER_LIST))
        assert found == {
            "Vidstreaming": "//streamwish.to/e/abc",
            "Streamtape": "https://streamtape.com/e/xyz",
        }

    def test_duplicate_label_last_write_wins(self) -> None:
        html = """
        <ul class="muti_link">
          <li data-video="//a.example/1">Server</li>
          <li data-video="//b.example/2">Server</li>
        </ul>
        """
        found = ServerListStrategy().discover(parse_html(html))
        assert found == {"Server": "//b.example/2"}

    def test_no_markup(self) -> None:
        assert ServerListStrategy().discover(parse_html("<p>nothing</p>")) == {}


class TestAlternativeListStrategy:
    def test_attribute_priority_and_anchor_lookup(self) -> None:
        found = AlternativeListStrategy().discover(parse_html(_ALT_LIST))
        assert found == {
            "FileMoon": "//filemoon.sx/e/1",
            "MixDrop": "https://mixdrop.co/e/2",
            "Server": "//dood.to/e/3",
        }

    def test_data_video_preferred_over_data_link(self) -> None:
        html = (
            '<ul class="server-list"><li data-link="//b/2" data-video="//a/1">'
            "<a>X</a></li></ul>"
        )
        found = AlternativeListStrategy().discover(parse_html(html))
        assert found == {"X": "//a/1"}


class TestIframeStrategy:
    def test_numbers_extra_iframes(self) -> None:
        found = IframeStrategy().discover(parse_html(_IFRAMES))
        assert found == {
            "Standard Server": "//site.example/embed/1",
            "Standard Server 2": "https://p2pplay.pro/#vid9",
        }


class TestScriptScanStrategy:
    def test_provider_and_media_urls(self) -> None:
        strategy = ScriptScanStrategy(("filemoon",))
        found = strategy.discover(parse_html(_SCRIPT))
        assert list(found.values()) == [
            "https://filemoon.sx/e/zz",
            "https://cdn.example/hls/master.m3u8?t=1",
        ]
        assert list(found) == ["Script Source 1", "Script Source 2"]

    def test_external_scripts_ignored(self) -> None:
        html = '<script src="https://filemoon.sx/player.js"></script>'
        assert ScriptScanStrategy(("filemoon",)).discover(parse_html(html)) == {}


class TestDiscoveryChain:
    def test_first_productive_strategy_wins(self) -> None:
        chain = DiscoveryChain(default_strategies(("filemoon",)))
        links = chain.discover(_SERVER_LIST + _IFRAMES + _SCRIPT)
        assert links == [
            ServerLink("Vidstreaming", "//streamwish.to/e/abc"),
            ServerLink("Streamtape", "https://streamtape.com/e/xyz"),
        ]

    def test_falls_through_to_iframes(self) -> None:
        chain = DiscoveryChain(default_strategies())
        links = chain.discover(_IFRAMES)
        assert [link.label for link in links] == ["Standard Server", "Standard Server 2"]

    def test_empty_page(self) -> None:
        chain = DiscoveryChain(default_strategies())
        assert chain.discover("<html><body></body></html>") == []

    def test_script_scan_can_be_disabled(self) -> None:
        chain = DiscoveryChain(default_strategies(("filemoon",), script_scan=False))
        assert chain.discover(_SCRIPT) == []
        assert all(s.name != "script_scan" for s in chain.strategies)

    def test_later_strategy_not_run_after_match(self) -> None:
        html = """
        <ul class="muti_link"><li data-video="//host/e/1">One</li></ul>
        <ul class="server-list"><li data-video="//host/e/2"><a>Two</a></li></ul>
        """
        second = AlternativeListStrategy()
        spy = MagicMock(wraps=second.discover)
        second.discover = spy  # type: ignore[method-assign]

        chain = DiscoveryChain([ServerListStrategy(), second, IframeStrategy()])
        links = chain.discover(html)

        assert links == [ServerLink("One", "//host/e/1")]
        assert spy.call_count == 0

    def test_blank_urls_do_not_count(self) -> None:
        html = '<ul class="muti_link"><li data-video="  ">One</li></ul>'
        chain = DiscoveryChain([ServerListStrategy(), IframeStrategy()])
        assert chain.discover(html + '<iframe src="//host/e/9"></iframe>') == [
            ServerLink("Standard Server", "//host/e/9")
        ]
