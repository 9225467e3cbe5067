from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides, ResolverConfig

_TOP_LEVEL_KEYS = ("app_name", "environment")

# Flat ENV / CLI keys outside the resolver section -> (section, key)
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
}

# Every ResolverConfig field is accepted flat (EMBEDARR_BASE_URL, --base-url, ...)
_RESOLVER_KEYS: frozenset[str] = frozenset(ResolverConfig.model_fields)

_SECTIONS: frozenset[str] = frozenset(
    {section for section, _ in _FLAT_KEYS.values()} | {"resolver"}
)


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into *base* in place; nested mappings merge, lists replace."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        else:
            base[key] = value
    return base


def _to_sections(layer: Mapping[str, Any]) -> dict[str, Any]:
    """
    Bring one configuration layer into the sectioned shape of config.yaml.

    A layer may already be sectioned (YAML, ``{"resolver": {...}}``) or
    flat (ENV and CLI, ``{"base_url": ...}``); both forms can be mixed.
    Unknown keys are dropped.
    """
    out: dict[str, Any] = {
        key: layer[key] for key in _TOP_LEVEL_KEYS if key in layer
    }

    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)

    for key, value in layer.items():
        if key in _FLAT_KEYS:
            section, section_key = _FLAT_KEYS[key]
            out.setdefault(section, {})[section_key] = value
        elif key in _RESOLVER_KEYS:
            out.setdefault("resolver", {})[key] = value

    return out


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the validated AppConfig from its layers, lowest precedence first:
    defaults < YAML file < EMBEDARR_* env vars (incl. .env) < cli overrides.

    Reads files only; never creates any.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        # Existing process env wins over the .env file
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _deep_merge(merged, _to_sections(layer))

    return AppConfig.model_validate(merged)
