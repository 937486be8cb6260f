"""Per-tag version counters and last-touched timestamps.

Versions live in the ``<marker>:TAGS`` hash and timestamps in the
``<marker>:TIME`` hash. The two are written independently: timestamps only
gate garbage collection, so a reader seeing one update before the other is
harmless.

Unseen tags read as version 1. Bumping an unseen tag moves it straight to 2,
so a bump always produces a version no existing key was derived with.
"""

import time
from collections.abc import Callable

from tagged_cache.adapters.base import AsyncBackingStore, BackingStore
from tagged_cache.config import Keyspace
from tagged_cache.types import Tag


class TagVersionStore:
    """Sync tag version store."""

    def __init__(
        self,
        store: BackingStore,
        keyspace: Keyspace,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._keyspace = keyspace
        self._clock = clock

    def get_version(self, tag: Tag) -> int:
        """Touch the tag and return its current version.

        This is a combined operation: it refreshes the last-touched time on
        every call and initializes unseen tags to version 1.
        """
        self._store.hset(self._keyspace.time, tag, int(self._clock()))
        version = self._store.hget(self._keyspace.tags, tag)
        if version is None:
            # Concurrent initializers each increment; none can reset a bump
            return self._store.hincrby(self._keyspace.tags, tag, 1)
        return int(version)

    def bump_version(self, tag: Tag) -> int:
        """Atomically increment the tag's version and return it."""
        version = self._store.hincrby(self._keyspace.tags, tag, 1)
        if version == 1:
            version = self._store.hincrby(self._keyspace.tags, tag, 1)
        return version

    def snapshot(self) -> dict[Tag, int]:
        """Return every known tag with its version."""
        return {
            tag: int(value)
            for tag, value in self._store.hgetall(self._keyspace.tags).items()
        }


class AsyncTagVersionStore:
    """Async tag version store."""

    def __init__(
        self,
        store: AsyncBackingStore,
        keyspace: Keyspace,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._keyspace = keyspace
        self._clock = clock

    async def get_version(self, tag: Tag) -> int:
        """Touch the tag and return its current version."""
        await self._store.hset(self._keyspace.time, tag, int(self._clock()))
        version = await self._store.hget(self._keyspace.tags, tag)
        if version is None:
            return await self._store.hincrby(self._keyspace.tags, tag, 1)
        return int(version)

    async def bump_version(self, tag: Tag) -> int:
        """Atomically increment the tag's version and return it."""
        version = await self._store.hincrby(self._keyspace.tags, tag, 1)
        if version == 1:
            version = await self._store.hincrby(self._keyspace.tags, tag, 1)
        return version

    async def snapshot(self) -> dict[Tag, int]:
        """Return every known tag with its version."""
        values = await self._store.hgetall(self._keyspace.tags)
        return {tag: int(value) for tag, value in values.items()}


__all__ = ["AsyncTagVersionStore", "TagVersionStore"]
