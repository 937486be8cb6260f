"""tagged-cache - O(1) tag invalidation for key-value stores."""

from contextlib import suppress

# Stores
from tagged_cache.adapters import (
    AsyncBackingStore,
    AsyncMemoryStore,
    BackingStore,
    MemoryStore,
)

# Clients
from tagged_cache.async_client import AsyncTaggedCache
from tagged_cache.client import TaggedCache

# Building blocks
from tagged_cache.codec import Codec, JsonZlibCodec
from tagged_cache.config import CacheConfig, Keyspace
from tagged_cache.connection import ConnectionState
from tagged_cache.duration import parse_duration
from tagged_cache.errors import (
    ConnectionFailure,
    DecodeFailure,
    StoreError,
    TaggedCacheError,
)
from tagged_cache.gc import AsyncGarbageCollector, GarbageCollector
from tagged_cache.keys import AsyncKeyDeriver, KeyDeriver
from tagged_cache.namespace import AsyncNamespaceController, NamespaceController

# Core types
from tagged_cache.types import (
    MISS,
    CleaningMode,
    CompositeKey,
    Duration,
    FlushAll,
    InvalidateTags,
    InvalidationRequest,
    Tag,
    TagMatch,
)
from tagged_cache.versions import AsyncTagVersionStore, TagVersionStore

# Optional store imports - only available when dependencies are installed
with suppress(ImportError):
    from tagged_cache.adapters import AsyncRedisStore, RedisStore

__version__ = "0.1.0"

__all__ = [
    "MISS",
    "AsyncBackingStore",
    "AsyncGarbageCollector",
    "AsyncKeyDeriver",
    "AsyncMemoryStore",
    "AsyncNamespaceController",
    "AsyncRedisStore",
    "AsyncTagVersionStore",
    "AsyncTaggedCache",
    "BackingStore",
    "CacheConfig",
    "CleaningMode",
    "Codec",
    "CompositeKey",
    "ConnectionFailure",
    "ConnectionState",
    "DecodeFailure",
    "Duration",
    "FlushAll",
    "GarbageCollector",
    "InvalidateTags",
    "InvalidationRequest",
    "JsonZlibCodec",
    "KeyDeriver",
    "Keyspace",
    "MemoryStore",
    "NamespaceController",
    "RedisStore",
    "StoreError",
    "Tag",
    "TagMatch",
    "TagVersionStore",
    "TaggedCache",
    "TaggedCacheError",
    "parse_duration",
]
