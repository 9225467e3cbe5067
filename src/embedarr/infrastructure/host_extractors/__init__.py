"""Host extractor implementations for turning host URLs into playable streams."""

from __future__ import annotations

from .registry import (
    DEFAULT_HOST_RULES,
    HostDispatchTable,
    build_default_dispatch_table,
)

__all__ = ["DEFAULT_HOST_RULES", "HostDispatchTable", "build_default_dispatch_table"]
