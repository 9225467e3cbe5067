"""Server discovery and link dereferencing for episode pages."""

from __future__ import annotations

from .dereference import EmbedDereferencer
from .strategies import DiscoveryChain, default_strategies

__all__ = ["DiscoveryChain", "EmbedDereferencer", "default_strategies"]
