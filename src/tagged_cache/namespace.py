"""Global namespace epoch used for whole-cache invalidation."""

import random

from tagged_cache.adapters.base import AsyncBackingStore, BackingStore
from tagged_cache.config import Keyspace

# New epochs start at a random value so a keyspace rebuilt after an external
# wipe does not reuse the composite keys of its previous life.
EPOCH_START_RANGE = (1, 10_000)


def _initial_epoch() -> int:
    return random.randint(*EPOCH_START_RANGE)


class NamespaceController:
    """Sync namespace controller."""

    def __init__(self, store: BackingStore, keyspace: Keyspace) -> None:
        self._store = store
        self._keyspace = keyspace

    def current(self) -> int:
        """Return the active epoch, creating it on first use."""
        value = self._store.get(self._keyspace.namespace)
        if value is None:
            self._store.set(self._keyspace.namespace, _initial_epoch(), nx=True)
            value = self._store.get(self._keyspace.namespace)
            if value is None:
                # Someone deleted it between the two calls; start over
                return self.current()
        return int(value)

    def bump_all(self) -> int:
        """Advance the epoch and return the new value."""
        return self._store.incr(self._keyspace.namespace)


class AsyncNamespaceController:
    """Async namespace controller."""

    def __init__(self, store: AsyncBackingStore, keyspace: Keyspace) -> None:
        self._store = store
        self._keyspace = keyspace

    async def current(self) -> int:
        """Return the active epoch, creating it on first use."""
        value = await self._store.get(self._keyspace.namespace)
        if value is None:
            await self._store.set(self._keyspace.namespace, _initial_epoch(), nx=True)
            value = await self._store.get(self._keyspace.namespace)
            if value is None:
                return await self.current()
        return int(value)

    async def bump_all(self) -> int:
        """Advance the epoch and return the new value."""
        return await self._store.incr(self._keyspace.namespace)


__all__ = ["AsyncNamespaceController", "EPOCH_START_RANGE", "NamespaceController"]
