"""Persistent response cache."""

from acknowledge.cache.store import CacheEntry, CacheStore, NullCache, digest_key
from acknowledge.config.models import CacheConfig


def create_cache(config: CacheConfig) -> CacheStore:
    """Create the cache store described by config."""
    if not config.enabled:
        return NullCache()
    return CacheStore(config.directory)


__all__ = [
    "CacheEntry",
    "CacheStore",
    "NullCache",
    "create_cache",
    "digest_key",
]
