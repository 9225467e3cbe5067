"""Tests for player source extraction from embed pages."""

from __future__ import annotations

from embedarr.infrastructure.host_extractors._video_extract import (
    extract_player_sources,
    unpack_p_a_c_k,
)

# "0 1('2')" with dictionary "var|player|https://cdn.example/v/master.m3u8"
_PACKED = (
    "<script>eval(function(p,a,c,k,e,d){return p}"
    "('0 1={sources:[{file:\"2\"}]}',36,3,'var|player|https://cdn.example/v/master.m3u8'"
    ".split('|'),0,{}))</script>"
)


class TestUnpack:
    def test_replaces_tokens(self) -> None:
        result = unpack_p_a_c_k(_PACKED)
        assert result is not None
        assert 'var player={sources:[{file:"https://cdn.example/v/master.m3u8"}]}' == result

    def test_not_packed(self) -> None:
        assert unpack_p_a_c_k("var x = 1;") is None


class TestExtractPlayerSources:
    def test_jwplayer_sources_with_labels(self) -> None:
        html = """
        <script>
        jwplayer("vplayer").setup({
          sources: [
            {file: "https://cdn.example/v/1080.m3u8", label: "1080p"},
            {file: "//cdn.example/v/480.mp4", label: "480p"}
          ],
          image: "https://cdn.example/thumbnail.jpg"
        });
        </script>
        """
        assert extract_player_sources(html) == [
            ("https://cdn.example/v/1080.m3u8", "1080p"),
            ("https://cdn.example/v/480.mp4", "480p"),
        ]

    def test_hls_keys(self) -> None:
        html = '<script>var links = {"hls2":"https://cdn.example/a/master.m3u8"};</script>'
        assert extract_player_sources(html) == [
            ("https://cdn.example/a/master.m3u8", None)
        ]

    def test_mixdrop_wurl(self) -> None:
        html = '<script>MDCore.wurl="//s-delivery.example/v/abc.mp4?s=1";</script>'
        assert extract_player_sources(html) == [
            ("https://s-delivery.example/v/abc.mp4?s=1", None)
        ]

    def test_packed_javascript(self) -> None:
        assert extract_player_sources(_PACKED) == [
            ("https://cdn.example/v/master.m3u8", None)
        ]

    def test_quoted_media_fallback(self) -> None:
        html = "<script>load('https://cdn.example/x/video.mp4');</script>"
        assert extract_player_sources(html) == [("https://cdn.example/x/video.mp4", None)]

    def test_junk_filtered(self) -> None:
        html = "<script>var t = 'https://cdn.example/track.vtt.mp4';</script>"
        assert extract_player_sources(html) == []

    def test_duplicates_dropped(self) -> None:
        html = """
        <script>
        sources: [{file: "https://cdn.example/a.m3u8"}, {file: "https://cdn.example/a.m3u8"}]
        </script>
        """
        assert extract_player_sources(html) == [("https://cdn.example/a.m3u8", None)]

    def test_nothing(self) -> None:
        assert extract_player_sources("<html><body>File Not Found</body></html>") == []
