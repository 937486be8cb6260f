"""Backing stores for tagged-cache."""

from contextlib import suppress

from tagged_cache.adapters.base import AsyncBackingStore, BackingStore, StoreValue
from tagged_cache.adapters.memory import AsyncMemoryStore, MemoryStore

# Optional stores - only available when dependencies are installed
with suppress(ImportError):
    from tagged_cache.adapters.redis import AsyncRedisStore, RedisStore

__all__ = [
    "AsyncBackingStore",
    "AsyncMemoryStore",
    "AsyncRedisStore",
    "BackingStore",
    "MemoryStore",
    "RedisStore",
    "StoreValue",
]
