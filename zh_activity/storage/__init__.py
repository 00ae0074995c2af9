"""Storage package for cached workspace metadata."""

from .cache import CacheStore, scoped_key

__all__ = ["CacheStore", "scoped_key"]
