from .host_extractor import HostExtractorPort

__all__ = ["HostExtractorPort"]
