"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "embedarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/131.0.0.0 Safari/537.36"
        ),
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "resolver": {
        "base_url": "https://kajzu.com",
        "max_concurrent_links": 8,
        "link_timeout_seconds": 30.0,
        "request_timeout_seconds": 15.0,
        "embed_path_markers": ["/embed", "/player", "/e/"],
        "shortener_domains": [
            "short.icu",
            "bit.ly",
            "tinyurl.com",
            "cutt.ly",
            "shorturl.at",
            "is.gd",
        ],
        "p2pplay_api_host": "t1.p2pplay.pro",
        "script_scan_enabled": True,
        "redirect_cache_ttl_seconds": 3600.0,
    },
}
