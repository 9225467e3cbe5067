"""Tests for the redirect-following generic and direct extractors."""

from __future__ import annotations

import httpx
import pytest
import respx

from embedarr.domain.entities.streams import Failed, QualityTag, Streams
from embedarr.infrastructure.host_extractors.direct import DirectExtractor
from embedarr.infrastructure.host_extractors.generic import (
    GenericExtractor,
    has_media_extension,
)


class TestHasMediaExtension:
    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example/a.mp4",
            "https://cdn.example/a.m3u8?token=1",
            "https://cdn.example/a.MKV",
            "https://cdn.example/hls/a.m3u8/seg",
        ],
    )
    def test_media(self, url: str) -> None:
        assert has_media_extension(url)

    def test_extension_only_in_query_ignored(self) -> None:
        assert not has_media_extension("https://host.example/play?f=a.mp4")

    def test_html_page(self) -> None:
        assert not has_media_extension("https://host.example/watch/1")


class TestGenericExtractor:
    def test_name(self) -> None:
        assert GenericExtractor(httpx.AsyncClient()).name == "generic"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_direct_media_url(self) -> None:
        respx.head("https://host/a.m3u8").respond(200)

        async with httpx.AsyncClient() as client:
            outcome = await GenericExtractor(client).extract(
                "https://host/a.m3u8?x=1", {}, "Standard Server"
            )

        assert isinstance(outcome, Streams)
        (stream,) = outcome.streams
        assert stream.playback_url == "https://host/a.m3u8?x=1"
        assert stream.label == "Standard Server Direct Stream - Unknown"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_follows_redirect_to_media(self) -> None:
        respx.head("https://go.example/v/1").respond(
            302, headers={"Location": "https://cdn.example/720/v.mp4"}
        )
        respx.head("https://cdn.example/720/v.mp4").respond(200)

        async with httpx.AsyncClient() as client:
            outcome = await GenericExtractor(client).extract(
                "https://go.example/v/1", {}, "S"
            )

        assert isinstance(outcome, Streams)
        assert outcome.streams[0].playback_url == "https://cdn.example/720/v.mp4"
        assert outcome.streams[0].quality is QualityTag.P720
        assert outcome.streams[0].source_url == "https://go.example/v/1"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_head_refused_falls_back_to_get(self) -> None:
        respx.head("https://go.example/v/2").respond(405)
        respx.get("https://go.example/v/2").respond(
            302, headers={"Location": "https://cdn.example/v.mkv"}
        )
        respx.get("https://cdn.example/v.mkv").respond(200, content=b"\x00" * 16)

        async with httpx.AsyncClient() as client:
            outcome = await GenericExtractor(client).extract(
                "https://go.example/v/2", {}, "S"
            )

        assert isinstance(outcome, Streams)
        assert outcome.streams[0].playback_url == "https://cdn.example/v.mkv"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_unresolved_host(self) -> None:
        respx.head("https://www.unknownhost.example/e/1").respond(200)

        async with httpx.AsyncClient() as client:
            outcome = await GenericExtractor(client).extract(
                "https://www.unknownhost.example/e/1", {}, "S"
            )

        assert outcome == Failed("unresolved host unknownhost.example")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_connection_error(self) -> None:
        respx.head("https://down.example/e/1").mock(
            side_effect=httpx.ConnectError("refused")
        )

        async with httpx.AsyncClient() as client:
            outcome = await GenericExtractor(client).extract(
                "https://down.example/e/1", {}, "S"
            )

        assert outcome == Failed("connection error at down.example")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_timeout(self) -> None:
        respx.head("https://slow.example/e/1").mock(
            side_effect=httpx.ConnectTimeout("slow")
        )

        async with httpx.AsyncClient() as client:
            outcome = await GenericExtractor(client).extract(
                "https://slow.example/e/1", {}, "S"
            )

        assert outcome == Failed("timeout at slow.example")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_media_url_survives_connection_error(self) -> None:
        respx.head("https://host/a.m3u8").mock(side_effect=httpx.ConnectError("refused"))

        async with httpx.AsyncClient() as client:
            outcome = await GenericExtractor(client).extract(
                "https://host/a.m3u8?x=1", {}, "S"
            )

        assert isinstance(outcome, Streams)
        (stream,) = outcome.streams
        assert stream.playback_url == "https://host/a.m3u8?x=1"
        assert stream.label == "S Direct Stream - Unknown"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_media_url_survives_timeout(self) -> None:
        respx.head("https://cdn.example/720/v.mp4").mock(
            side_effect=httpx.ConnectTimeout("slow")
        )

        async with httpx.AsyncClient() as client:
            outcome = await GenericExtractor(client).extract(
                "https://cdn.example/720/v.mp4", {}, "S"
            )

        assert isinstance(outcome, Streams)
        assert outcome.streams[0].quality is QualityTag.P720


class TestDirectExtractor:
    @pytest.mark.asyncio()
    async def test_url_is_stream(self) -> None:
        url = "https://storage.googleapis.com/bucket/ep1_1080.mp4"
        outcome = await DirectExtractor().extract(url, {}, "Server")

        assert isinstance(outcome, Streams)
        (stream,) = outcome.streams
        assert stream.playback_url == url
        assert stream.quality is QualityTag.P1080
        assert stream.label == "Server Direct Stream - 1080p"
