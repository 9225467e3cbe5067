from .urls import hostname_of, normalize_url, origin_of, same_site

__all__ = ["hostname_of", "normalize_url", "origin_of", "same_site"]
