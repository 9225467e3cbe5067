from .quality import classify_quality
from .stream_sorter import (
    StreamSorter,
    deduplicate,
    no_sources_stream,
    placeholder_stream,
)

__all__ = [
    "StreamSorter",
    "classify_quality",
    "deduplicate",
    "no_sources_stream",
    "placeholder_stream",
]
