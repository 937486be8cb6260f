"""Garbage collection of stale tag metadata.

Without it the TAGS and TIME hashes grow with every tag ever used. A sweep
forgets tags nobody has derived a key with for longer than the staleness
threshold; their version silently restarts at 1 on next use. Sweeps are
gated by the REFRESH marker key, so across all instances at most one runs
per refresh window. Duplicate sweeps in a race are harmless because field
deletion is idempotent.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping

from tagged_cache.adapters.base import AsyncBackingStore, BackingStore
from tagged_cache.config import Keyspace
from tagged_cache.types import Tag

logger = logging.getLogger(__name__)


def find_stale_tags(
    touched: Mapping[Tag, bytes | str | int],
    now: float,
    stale_after: int,
) -> list[Tag]:
    """Select tags idle for longer than stale_after seconds.

    Unreadable timestamps count as stale.
    """
    stale: list[Tag] = []
    for tag, raw in touched.items():
        try:
            age = now - int(raw)
        except (TypeError, ValueError):
            stale.append(tag)
            continue
        if age > stale_after:
            stale.append(tag)
    return stale


class GarbageCollector:
    """Sync garbage collector."""

    def __init__(
        self,
        store: BackingStore,
        keyspace: Keyspace,
        *,
        refresh_window: int,
        stale_after: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._keyspace = keyspace
        self._refresh_window = refresh_window
        self._stale_after = stale_after
        self._clock = clock

    def run(self, *, force: bool = False) -> int | None:
        """Sweep stale tags unless another sweep ran this window.

        Returns:
            Number of tags removed, or None if the sweep was skipped
        """
        if not force:
            if self._store.exists(self._keyspace.refresh):
                logger.debug("Tag sweep skipped: refresh marker present")
                return None
            if not self._store.set(
                self._keyspace.refresh, 1, self._refresh_window, nx=True
            ):
                logger.debug("Tag sweep skipped: another instance holds the marker")
                return None
        else:
            self._store.set(self._keyspace.refresh, 1, self._refresh_window)
        return self._sweep()

    def _sweep(self) -> int:
        touched = self._store.hgetall(self._keyspace.time)
        stale = find_stale_tags(touched, self._clock(), self._stale_after)
        for tag in stale:
            self._store.hdel(self._keyspace.time, tag)
            self._store.hdel(self._keyspace.tags, tag)
        logger.info("Tag sweep removed %d of %d tags", len(stale), len(touched))
        return len(stale)


class AsyncGarbageCollector:
    """Async garbage collector."""

    def __init__(
        self,
        store: AsyncBackingStore,
        keyspace: Keyspace,
        *,
        refresh_window: int,
        stale_after: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._keyspace = keyspace
        self._refresh_window = refresh_window
        self._stale_after = stale_after
        self._clock = clock

    async def run(self, *, force: bool = False) -> int | None:
        """Sweep stale tags unless another sweep ran this window."""
        if not force:
            if await self._store.exists(self._keyspace.refresh):
                logger.debug("Tag sweep skipped: refresh marker present")
                return None
            if not await self._store.set(
                self._keyspace.refresh, 1, self._refresh_window, nx=True
            ):
                logger.debug("Tag sweep skipped: another instance holds the marker")
                return None
        else:
            await self._store.set(self._keyspace.refresh, 1, self._refresh_window)
        return await self._sweep()

    async def _sweep(self) -> int:
        touched = await self._store.hgetall(self._keyspace.time)
        stale = find_stale_tags(touched, self._clock(), self._stale_after)
        for tag in stale:
            await self._store.hdel(self._keyspace.time, tag)
            await self._store.hdel(self._keyspace.tags, tag)
        logger.info("Tag sweep removed %d of %d tags", len(stale), len(touched))
        return len(stale)


__all__ = ["AsyncGarbageCollector", "GarbageCollector", "find_stale_tags"]
