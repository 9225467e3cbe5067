from .streams import (
    Empty,
    ExtractionOutcome,
    Failed,
    HostRule,
    QualityTag,
    ResolvedStream,
    ServerLink,
    Streams,
)

__all__ = [
    "Empty",
    "ExtractionOutcome",
    "Failed",
    "HostRule",
    "QualityTag",
    "ResolvedStream",
    "ServerLink",
    "Streams",
]
