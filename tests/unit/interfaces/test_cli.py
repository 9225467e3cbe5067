"""Tests for the command line entrypoint."""

from __future__ import annotations

import json

import pytest

from embedarr.domain.entities.streams import QualityTag, ResolvedStream
from embedarr.domain.exceptions import PageFetchError
from embedarr.infrastructure.config import AppConfig
from embedarr.interfaces.cli import cli

PAGE = "https://site.example/episode/1"


class TestParseArgs:
    def test_no_arguments_serves(self) -> None:
        args = cli._parse_args([])
        assert args.command == "serve"

    def test_leading_flag_serves(self) -> None:
        args = cli._parse_args(["--port", "9000"])
        assert args.command == "serve"
        assert args.port == 9000

    def test_resolve(self) -> None:
        args = cli._parse_args(["resolve", PAGE, "--base-url", "https://site.example"])
        assert args.command == "resolve"
        assert args.page_url == PAGE
        assert args.base_url == "https://site.example"


class TestLoad:
    def test_cli_flags_become_overrides(self) -> None:
        args = cli._parse_args(
            ["resolve", PAGE, "--base-url", "https://cli.example/", "--log-level", "ERROR"]
        )
        config = cli._load(args)
        assert config.resolver.base_url == "https://cli.example"
        assert config.log_level == "ERROR"


class TestStart:
    def test_resolve_prints_json(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        async def _fake(config: AppConfig, page_url: str) -> str:
            return json.dumps({"streams": [{"url": page_url}]})

        monkeypatch.setattr(cli, "resolve_to_json", _fake)

        assert cli.start(["resolve", PAGE]) == 0
        assert json.loads(capsys.readouterr().out) == {"streams": [{"url": PAGE}]}

    def test_resolve_page_fetch_error_exit_code(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def _fail(config: AppConfig, page_url: str) -> str:
            raise PageFetchError(f"{page_url} returned HTTP 503")

        monkeypatch.setattr(cli, "resolve_to_json", _fail)

        assert cli.start(["resolve", PAGE]) == 1

    def test_serve_runs_uvicorn(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: dict[str, object] = {}

        def _run(app: object, **kwargs: object) -> None:
            calls.update(kwargs)

        monkeypatch.setattr(cli.uvicorn, "run", _run)
        monkeypatch.delenv("PORT", raising=False)

        assert cli.start(["serve", "--host", "127.0.0.1"]) == 0
        assert calls["host"] == "127.0.0.1"
        assert calls["port"] == 7980
        assert isinstance(calls["log_config"], dict)


class TestResolveToJson:
    @pytest.mark.asyncio()
    async def test_payload_shape(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stream = ResolvedStream(
            playback_url="https://cdn.example/v.m3u8",
            label="Server - 720p",
            quality=QualityTag.P720,
            source_url="https://host.example/e/1",
            headers={"Referer": "https://host.example/"},
        )

        class _UseCase:
            async def execute(self, page_url: str) -> list[ResolvedStream]:
                return [stream]

        monkeypatch.setattr(cli, "build_resolve_use_case", lambda config, client: _UseCase())

        payload = json.loads(await cli.resolve_to_json(AppConfig(), PAGE))
        assert payload == {
            "streams": [
                {
                    "url": "https://cdn.example/v.m3u8",
                    "label": "Server - 720p",
                    "quality": "720p",
                    "source_url": "https://host.example/e/1",
                    "headers": {"Referer": "https://host.example/"},
                    "placeholder": False,
                }
            ]
        }
