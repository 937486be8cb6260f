"""Sync cache client."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from tagged_cache.adapters.base import BackingStore
from tagged_cache.codec import Codec, JsonZlibCodec
from tagged_cache.config import CacheConfig
from tagged_cache.connection import Connected, ConnectionState, Disabled
from tagged_cache.duration import parse_duration
from tagged_cache.errors import ConnectionFailure, DecodeFailure, StoreError
from tagged_cache.gc import GarbageCollector
from tagged_cache.keys import KeyDeriver
from tagged_cache.namespace import NamespaceController
from tagged_cache.types import (
    CleaningMode,
    CompositeKey,
    Duration,
    FlushAll,
    InvalidateTags,
    InvalidationRequest,
    TagMatch,
    TagsInput,
)
from tagged_cache.versions import TagVersionStore

logger = logging.getLogger(__name__)

# States in which a caller must wait for connect() to settle
_PENDING = (ConnectionState.DISCONNECTED, ConnectionState.CONNECTING)


def resolve_ttl(ttl: Duration | None, default: int) -> int:
    """Turn a save() ttl argument into positive whole seconds."""
    seconds = default if ttl is None else parse_duration(ttl)
    if seconds <= 0:
        raise ValueError("ttl must be positive")
    return seconds


def to_request(mode: CleaningMode | str, tags: TagsInput) -> InvalidationRequest:
    """Translate a legacy cleaning mode into an invalidation request."""
    mode = CleaningMode(mode)
    if mode is CleaningMode.ALL:
        return FlushAll()
    tag_match = TagMatch.ALL if mode is CleaningMode.MATCHING_TAG else TagMatch.ANY
    return InvalidateTags(tags, match=tag_match)  # type: ignore[arg-type]


class TaggedCache:
    """Sync tag-aware cache client.

    Connects lazily on first use. If the backing store cannot be reached the
    client switches to no-op mode for good: saves and cleans do nothing and
    loads miss.
    """

    def __init__(
        self,
        store: BackingStore,
        config: CacheConfig | None = None,
        *,
        codec: Codec | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._config = config or CacheConfig()
        self._codec = codec or JsonZlibCodec()
        keyspace = self._config.keyspace
        self._versions = TagVersionStore(store, keyspace, clock=clock)
        self._namespace = NamespaceController(store, keyspace)
        self._deriver = KeyDeriver(self._versions, self._namespace, keyspace.marker)
        self._gc = GarbageCollector(
            store,
            keyspace,
            refresh_window=self._config.refresh_window_seconds,
            stale_after=self._config.stale_after_seconds,
            clock=clock,
        )
        self._state = ConnectionState.DISCONNECTED
        self._backend: Disabled | Connected[BackingStore] = Disabled("not connected")
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: CacheConfig, **kwargs: Any) -> TaggedCache:
        """Create a Redis-backed client from ``config.url``."""
        if not config.url:
            raise ValueError("config.url is required")
        from tagged_cache.adapters.redis import RedisStore

        return cls(RedisStore.from_url(config.url), config, **kwargs)

    @classmethod
    def from_url(
        cls, url: str, config: CacheConfig | None = None, **kwargs: Any
    ) -> TaggedCache:
        """Create a Redis-backed client from a ``redis://`` URL."""
        return cls.from_config(replace(config or CacheConfig(), url=url), **kwargs)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def prefix(self) -> str:
        return self._config.prefix

    def set_prefix(self, prefix: str) -> None:
        """Separate this client's keys from other logical caches in the store."""
        self._config = replace(self._config, prefix=str(prefix))

    def connect(self) -> ConnectionState:
        """Connect to the store and run an opportunistic tag sweep."""
        with self._lock:
            if self._state is not ConnectionState.DISCONNECTED:
                return self._state
            self._state = ConnectionState.CONNECTING
            try:
                self._store.ping()
                self._namespace.current()
            except StoreError as e:
                self._fail(e)
                return self._state
            self._backend = Connected(self._store)
            self._state = ConnectionState.CONNECTED
            try:
                self._gc.run()
            except ConnectionFailure as e:
                self._fail(e)
            except StoreError as e:
                logger.warning("Tag sweep failed: %s", e)
            return self._state

    def disconnect(self) -> None:
        """Close the store connection. A later call reconnects."""
        with self._lock:
            if isinstance(self._backend, Connected):
                self._backend.store.close()
                self._backend = Disabled("disconnected")
                self._state = ConnectionState.DISCONNECTED

    def save(
        self,
        value: Any,
        key: str,
        tags: TagsInput = (),
        ttl: Duration | None = None,
    ) -> bool | None:
        """Store a value under key and tags.

        Args:
            value: JSON-serializable value (with the default codec)
            key: Logical key
            tags: Tags to invalidate the entry by
            ttl: Lifetime in seconds or as a duration string

        Returns:
            The store's acknowledgment, or None when the cache is disabled
        """
        seconds = resolve_ttl(ttl, self._config.default_ttl_seconds)
        backend = self._ensure_connected()
        if isinstance(backend, Disabled):
            return None
        try:
            composite = self._deriver.derive(self._config.prefix, key, tags)
            return backend.store.set(composite, self._codec.encode(value), seconds)
        except ConnectionFailure as e:
            self._fail(e)
            return None

    def load(self, key: str, tags: TagsInput = (), default: Any = None) -> Any:
        """Load a value saved under key and tags.

        Misses, corrupt payloads, store errors and a disabled cache all
        return ``default``. Pass ``MISS`` to tell a miss from a stored None.
        """
        backend = self._ensure_connected()
        if isinstance(backend, Disabled):
            return default
        try:
            composite = self._deriver.derive(self._config.prefix, key, tags)
            data = backend.store.get(composite)
        except ConnectionFailure as e:
            self._fail(e)
            return default
        except StoreError as e:
            logger.warning("Load of %r failed: %s", key, e)
            return default
        if not data:
            return default
        try:
            return self._codec.decode(data)
        except DecodeFailure as e:
            logger.warning("Discarding payload for %r: %s", key, e)
            return default

    def clean(self, mode: CleaningMode | str, tags: TagsInput = ()) -> None:
        """Invalidate the whole cache or every entry carrying the given tags."""
        self.invalidate(to_request(mode, tags))

    def invalidate(self, request: InvalidationRequest) -> None:
        """Apply a FlushAll or InvalidateTags request."""
        if not isinstance(request, (FlushAll, InvalidateTags)):
            raise TypeError(f"Expected an invalidation request, got {type(request)}")
        backend = self._ensure_connected()
        if isinstance(backend, Disabled):
            return
        try:
            if isinstance(request, FlushAll):
                epoch = self._namespace.bump_all()
                logger.debug("Namespace advanced to %d", epoch)
            else:
                # ANY and ALL both bump every listed tag
                for tag in request.tags:
                    version = self._versions.bump_version(tag)
                    logger.debug("Tag %r advanced to %d", tag, version)
        except ConnectionFailure as e:
            self._fail(e)

    def collect_garbage(self, *, force: bool = False) -> int | None:
        """Run a tag sweep now. Returns removed count, None if skipped."""
        backend = self._ensure_connected()
        if isinstance(backend, Disabled):
            return None
        try:
            return self._gc.run(force=force)
        except ConnectionFailure as e:
            self._fail(e)
            return None

    def composite_key(self, key: str, tags: TagsInput = ()) -> CompositeKey | None:
        """Return the storage key save/load would use right now."""
        backend = self._ensure_connected()
        if isinstance(backend, Disabled):
            return None
        try:
            return self._deriver.derive(self._config.prefix, key, tags)
        except ConnectionFailure as e:
            self._fail(e)
            return None

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _ensure_connected(self) -> Disabled | Connected[BackingStore]:
        if self._state in _PENDING:
            self.connect()
        return self._backend

    def _fail(self, error: Exception) -> None:
        with self._lock:
            logger.warning("Tagged cache disabled: %s", error)
            self._backend = Disabled(str(error))
            self._state = ConnectionState.FAILED


__all__ = ["TaggedCache", "resolve_ttl", "to_request"]
