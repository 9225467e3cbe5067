from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from embedarr.domain.exceptions import PageFetchError
from embedarr.infrastructure.config import AppConfig, load_config
from embedarr.infrastructure.logging.setup import configure_logging
from embedarr.interfaces.composition import build_http_client, build_resolve_use_case
from embedarr.interfaces.main import build_app

log = structlog.get_logger(__name__)


def _add_config_flags(parser: argparse.ArgumentParser) -> None:
    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Override the content site base URL.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="embedarr")
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument(
        "--host",
        default=None,
        help="Bind host (overrides HOST env).",
    )
    serve.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (overrides PORT env).",
    )
    _add_config_flags(serve)

    resolve = commands.add_parser(
        "resolve", help="Resolve one episode page and print its streams as JSON."
    )
    resolve.add_argument("page_url", help="Absolute URL of the episode page.")
    _add_config_flags(resolve)

    argv = list(argv or [])
    if not argv or argv[0].startswith("-") and argv[0] not in ("-h", "--help"):
        # No subcommand: serve
        argv = ["serve", *argv]
    return parser.parse_args(argv)


def _load(args: argparse.Namespace) -> AppConfig:
    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.base_url:
        cli_overrides["base_url"] = args.base_url
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    return load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )


async def resolve_to_json(config: AppConfig, page_url: str) -> str:
    """Resolve *page_url* with a short-lived client; JSON like the HTTP API."""
    async with build_http_client(config) as http_client:
        use_case = build_resolve_use_case(config, http_client)
        streams = await use_case.execute(page_url)

    payload = {
        "streams": [
            {
                "url": s.playback_url,
                "label": s.label,
                "quality": s.quality.label,
                "source_url": s.source_url,
                "headers": dict(s.headers),
                "placeholder": s.is_placeholder,
            }
            for s in streams
        ]
    }
    return json.dumps(payload, indent=2)


def _serve(args: argparse.Namespace, config: AppConfig, log_config: dict[str, Any]) -> int:
    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7980"))

    uvicorn.run(
        build_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )
    return 0


def _resolve(args: argparse.Namespace, config: AppConfig) -> int:
    try:
        output = asyncio.run(resolve_to_json(config, args.page_url))
    except PageFetchError as e:
        log.error("resolve_page_fetch_failed", page_url=args.page_url, error=str(e))
        return 1
    sys.stdout.write(output + "\n")
    return 0


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, then either serves the API or resolves a
    single page.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(list(argv))
    config = _load(args)
    log_config = configure_logging(config)

    if args.command == "resolve":
        return _resolve(args, config)
    return _serve(args, config, log_config)


if __name__ == "__main__":
    raise SystemExit(start())
