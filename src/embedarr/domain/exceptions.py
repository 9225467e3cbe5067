"""Resolution error taxonomy."""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for all resolution errors."""


class DiscoveryEmpty(ResolutionError):
    """Raised when no discovery strategy found a server link on the page."""


class DereferenceFailed(ResolutionError):
    """Raised when an internal embed page or URL shortener did not resolve."""


class HostExtractionFailed(ResolutionError):
    """Raised when a host extractor crashed or returned malformed data."""

    def __init__(self, extractor: str, message: str) -> None:
        super().__init__(f"{extractor}: {message}")
        self.extractor = extractor


class NoPlayableStream(ResolutionError):
    """Raised when every discovered link failed or was unmatched."""

    def __init__(self, failed_count: int) -> None:
        super().__init__(f"no playable stream ({failed_count} servers failed)")
        self.failed_count = failed_count


class PageFetchError(ResolutionError):
    """Raised when the episode page itself could not be fetched."""
