from __future__ import annotations

import copy
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

import structlog

from embedarr.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)


BASE_LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {},
    "handlers": {
        "default": {
            "formatter": "structlog",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
        "access": {
            "formatter": "structlog",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"level": "INFO"},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
        # Request lines of the shared client are noise next to our own events.
        "httpx": {"level": "WARNING"},
        "httpcore": {"level": "WARNING"},
    },
}

# Loggers whose level is pinned instead of following config.log_level
_PINNED_LOGGERS = frozenset({"httpx", "httpcore"})


def _utc_iso(created: float) -> str:
    return datetime.fromtimestamp(created, tz=timezone.utc).strftime(
        "%Y-%m-%dT%H:%M:%S.%fZ"
    )


def _stdlib_record_fields(
    _: Any, __: Any, event_dict: structlog.typing.EventDict
) -> structlog.typing.EventDict:
    """Normalize events that come from stdlib loggers (uvicorn, httpx).

    The timestamp is taken from ``LogRecord.created``; uvicorn's ANSI copy
    of the message (``color_message``) is discarded.
    """
    event_dict.pop("color_message", None)
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        event_dict["timestamp"] = _utc_iso(record.created)
    return event_dict


def _renderer(config: AppConfig) -> structlog.typing.Processor:
    if config.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """
    Build a uvicorn-compatible logging config dict (dictConfig) whose
    handlers render through structlog.

    - config.log_level applies to every preconfigured logger except the
      pinned HTTP client loggers.
    - Everything else is controlled via the root logger.
    """
    cfg = copy.deepcopy(BASE_LOGGING_CONFIG)

    cfg["formatters"]["structlog"] = {
        "()": structlog.stdlib.ProcessorFormatter,
        "foreign_pre_chain": [
            structlog.contextvars.merge_contextvars,
            _stdlib_record_fields,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
        ],
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    }

    level = config.log_level
    for name, logger_cfg in cfg["loggers"].items():
        if name not in _PINNED_LOGGERS:
            logger_cfg["level"] = level

    cfg["root"] = {"handlers": ["default"], "level": level}
    return cfg


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """
    Configure structlog + stdlib logging.

    Returns the dictConfig that was applied, so ``uvicorn.run`` can reuse it.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)

    log.info(
        "logging_configured", log_format=config.log_format, log_level=config.log_level
    )
    return cfg
