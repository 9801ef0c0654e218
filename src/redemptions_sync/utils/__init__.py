"""Shared utilities."""

from .cache import CacheInterface, MemoryCache, MetadataCache

__all__ = ["CacheInterface", "MemoryCache", "MetadataCache"]
