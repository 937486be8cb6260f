"""Async cache client."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from tagged_cache.adapters.base import AsyncBackingStore
from tagged_cache.client import resolve_ttl, to_request
from tagged_cache.codec import Codec, JsonZlibCodec
from tagged_cache.config import CacheConfig
from tagged_cache.connection import Connected, ConnectionState, Disabled
from tagged_cache.errors import ConnectionFailure, DecodeFailure, StoreError
from tagged_cache.gc import AsyncGarbageCollector
from tagged_cache.keys import AsyncKeyDeriver
from tagged_cache.namespace import AsyncNamespaceController
from tagged_cache.types import (
    CleaningMode,
    CompositeKey,
    Duration,
    FlushAll,
    InvalidateTags,
    InvalidationRequest,
    TagsInput,
)
from tagged_cache.versions import AsyncTagVersionStore

logger = logging.getLogger(__name__)

# States in which a caller must wait for connect() to settle
_PENDING = (ConnectionState.DISCONNECTED, ConnectionState.CONNECTING)


class AsyncTaggedCache:
    """Async tag-aware cache client.

    Same semantics as TaggedCache: lazy connection on first use, permanent
    no-op mode once the store is found unreachable.
    """

    def __init__(
        self,
        store: AsyncBackingStore,
        config: CacheConfig | None = None,
        *,
        codec: Codec | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._config = config or CacheConfig()
        self._codec = codec or JsonZlibCodec()
        keyspace = self._config.keyspace
        self._versions = AsyncTagVersionStore(store, keyspace, clock=clock)
        self._namespace = AsyncNamespaceController(store, keyspace)
        self._deriver = AsyncKeyDeriver(
            self._versions, self._namespace, keyspace.marker
        )
        self._gc = AsyncGarbageCollector(
            store,
            keyspace,
            refresh_window=self._config.refresh_window_seconds,
            stale_after=self._config.stale_after_seconds,
            clock=clock,
        )
        self._state = ConnectionState.DISCONNECTED
        self._backend: Disabled | Connected[AsyncBackingStore] = Disabled(
            "not connected"
        )
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: CacheConfig, **kwargs: Any) -> AsyncTaggedCache:
        """Create a Redis-backed client from ``config.url``."""
        if not config.url:
            raise ValueError("config.url is required")
        from tagged_cache.adapters.redis import AsyncRedisStore

        return cls(AsyncRedisStore.from_url(config.url), config, **kwargs)

    @classmethod
    def from_url(
        cls, url: str, config: CacheConfig | None = None, **kwargs: Any
    ) -> AsyncTaggedCache:
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

    async def connect(self) -> ConnectionState:
        """Connect to the store and run an opportunistic tag sweep."""
        async with self._lock:
            if self._state is not ConnectionState.DISCONNECTED:
                return self._state
            self._state = ConnectionState.CONNECTING
            try:
                await self._store.ping()
                await self._namespace.current()
            except StoreError as e:
                self._fail(e)
                return self._state
            self._backend = Connected(self._store)
            self._state = ConnectionState.CONNECTED
            try:
                await self._gc.run()
            except ConnectionFailure as e:
                self._fail(e)
            except StoreError as e:
                logger.warning("Tag sweep failed: %s", e)
            return self._state

    async def disconnect(self) -> None:
        """Close the store connection. A later call reconnects."""
        async with self._lock:
            if isinstance(self._backend, Connected):
                await self._backend.store.close()
                self._backend = Disabled("disconnected")
                self._state = ConnectionState.DISCONNECTED

    async def save(
        self,
        value: Any,
        key: str,
        tags: TagsInput = (),
        ttl: Duration | None = None,
    ) -> bool | None:
        """Store a value under key and tags.

        Returns:
            The store's acknowledgment, or None when the cache is disabled
        """
        seconds = resolve_ttl(ttl, self._config.default_ttl_seconds)
        backend = await self._ensure_connected()
        if isinstance(backend, Disabled):
            return None
        try:
            composite = await self._deriver.derive(self._config.prefix, key, tags)
            return await backend.store.set(
                composite, self._codec.encode(value), seconds
            )
        except ConnectionFailure as e:
            self._fail(e)
            return None

    async def load(self, key: str, tags: TagsInput = (), default: Any = None) -> Any:
        """Load a value saved under key and tags, or return ``default``."""
        backend = await self._ensure_connected()
        if isinstance(backend, Disabled):
            return default
        try:
            composite = await self._deriver.derive(self._config.prefix, key, tags)
            data = await backend.store.get(composite)
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

    async def clean(self, mode: CleaningMode | str, tags: TagsInput = ()) -> None:
        """Invalidate the whole cache or every entry carrying the given tags."""
        await self.invalidate(to_request(mode, tags))

    async def invalidate(self, request: InvalidationRequest) -> None:
        """Apply a FlushAll or InvalidateTags request."""
        if not isinstance(request, (FlushAll, InvalidateTags)):
            raise TypeError(f"Expected an invalidation request, got {type(request)}")
        backend = await self._ensure_connected()
        if isinstance(backend, Disabled):
            return
        try:
            if isinstance(request, FlushAll):
                epoch = await self._namespace.bump_all()
                logger.debug("Namespace advanced to %d", epoch)
            else:
                for tag in request.tags:
                    version = await self._versions.bump_version(tag)
                    logger.debug("Tag %r advanced to %d", tag, version)
        except ConnectionFailure as e:
            self._fail(e)

    async def collect_garbage(self, *, force: bool = False) -> int | None:
        """Run a tag sweep now. Returns removed count, None if skipped."""
        backend = await self._ensure_connected()
        if isinstance(backend, Disabled):
            return None
        try:
            return await self._gc.run(force=force)
        except ConnectionFailure as e:
            self._fail(e)
            return None

    async def composite_key(
        self, key: str, tags: TagsInput = ()
    ) -> CompositeKey | None:
        """Return the storage key save/load would use right now."""
        backend = await self._ensure_connected()
        if isinstance(backend, Disabled):
            return None
        try:
            return await self._deriver.derive(self._config.prefix, key, tags)
        except ConnectionFailure as e:
            self._fail(e)
            return None

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _ensure_connected(self) -> Disabled | Connected[AsyncBackingStore]:
        if self._state in _PENDING:
            await self.connect()
        return self._backend

    def _fail(self, error: Exception) -> None:
        logger.warning("Tagged cache disabled: %s", error)
        self._backend = Disabled(str(error))
        self._state = ConnectionState.FAILED


__all__ = ["AsyncTaggedCache"]
