"""In-memory backing stores."""

from __future__ import annotations

import asyncio
import heapq
import threading
import time
from collections.abc import Callable

from tagged_cache.adapters.base import StoreValue
from tagged_cache.errors import StoreError


def _to_bytes(value: StoreValue) -> bytes:
    """Coerce a written value the way Redis does."""
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def _to_int(value: bytes) -> int:
    try:
        return int(value)
    except ValueError:
        raise StoreError("value is not an integer or out of range") from None


class _MemoryData:
    """Unlocked storage shared by the sync and async stores."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self._clock = clock
        self._values: dict[str, tuple[bytes, float | None]] = {}
        self._hashes: dict[str, dict[str, bytes]] = {}
        # Expiry times of written keys, so orphaned entries are freed on write
        self._expiries: list[tuple[float, str]] = []

    def _live(self, key: str) -> bytes | None:
        item = self._values.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._values[key]
            return None
        return value

    def _reclaim(self) -> None:
        now = self._clock()
        while self._expiries and self._expiries[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiries)
            item = self._values.get(key)
            if item is not None and item[1] == expires_at:
                del self._values[key]

    def _store(self, key: str, value: bytes, expires_at: float | None) -> None:
        self._reclaim()
        self._values[key] = (value, expires_at)
        if expires_at is not None:
            heapq.heappush(self._expiries, (expires_at, key))

    def get(self, key: str) -> bytes | None:
        return self._live(key)

    def set(self, key: str, value: StoreValue, ttl: int | None, nx: bool) -> bool:
        if nx and self._live(key) is not None:
            return False
        expires_at = self._clock() + ttl if ttl is not None else None
        self._store(key, _to_bytes(value), expires_at)
        return True

    def exists(self, key: str) -> bool:
        return self._live(key) is not None or bool(self._hashes.get(key))

    def incr(self, key: str) -> int:
        current = self._live(key)
        expires_at = self._values[key][1] if current is not None else None
        value = (_to_int(current) if current is not None else 0) + 1
        self._store(key, str(value).encode(), expires_at)
        return value

    def hget(self, key: str, field: str) -> bytes | None:
        return self._hashes.get(key, {}).get(field)

    def hset(self, key: str, field: str, value: StoreValue) -> None:
        self._hashes.setdefault(key, {})[field] = _to_bytes(value)

    def hincrby(self, key: str, field: str, amount: int) -> int:
        fields = self._hashes.setdefault(key, {})
        current = fields.get(field)
        value = (_to_int(current) if current is not None else 0) + amount
        fields[field] = str(value).encode()
        return value

    def hdel(self, key: str, field: str) -> None:
        fields = self._hashes.get(key)
        if fields is None:
            return
        fields.pop(field, None)
        if not fields:
            del self._hashes[key]

    def hgetall(self, key: str) -> dict[str, bytes]:
        return dict(self._hashes.get(key, {}))

    def keys(self) -> list[str]:
        live = [key for key in list(self._values) if self._live(key) is not None]
        return sorted([*live, *self._hashes])

    def clear(self) -> None:
        self._values.clear()
        self._hashes.clear()
        self._expiries.clear()

    def __len__(self) -> int:
        return len(self._values) + len(self._hashes)


class MemoryStore:
    """Thread-safe in-memory store for tests and single-process use.

    Expiry is evaluated lazily against ``clock``, which defaults to
    ``time.time`` and can be replaced to control time in tests.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._data = _MemoryData(clock)
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def set(
        self,
        key: str,
        value: StoreValue,
        ttl: int | None = None,
        *,
        nx: bool = False,
    ) -> bool:
        with self._lock:
            return self._data.set(key, value, ttl, nx)

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._data.exists(key)

    def incr(self, key: str) -> int:
        with self._lock:
            return self._data.incr(key)

    def hget(self, key: str, field: str) -> bytes | None:
        with self._lock:
            return self._data.hget(key, field)

    def hset(self, key: str, field: str, value: StoreValue) -> None:
        with self._lock:
            self._data.hset(key, field, value)

    def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        with self._lock:
            return self._data.hincrby(key, field, amount)

    def hdel(self, key: str, field: str) -> None:
        with self._lock:
            self._data.hdel(key, field)

    def hgetall(self, key: str) -> dict[str, bytes]:
        with self._lock:
            return self._data.hgetall(key)

    def keys(self) -> list[str]:
        """List live keys, including hashes."""
        with self._lock:
            return self._data.keys()

    def __len__(self) -> int:
        """Count held keys, including expired ones not yet reclaimed."""
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        """Drop every key."""
        with self._lock:
            self._data.clear()

    def ping(self) -> None:
        """Always reachable."""

    def close(self) -> None:
        """Nothing to release."""


class AsyncMemoryStore:
    """Async in-memory store for tests and single-process use."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._data = _MemoryData(clock)
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            return self._data.get(key)

    async def set(
        self,
        key: str,
        value: StoreValue,
        ttl: int | None = None,
        *,
        nx: bool = False,
    ) -> bool:
        async with self._lock:
            return self._data.set(key, value, ttl, nx)

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return self._data.exists(key)

    async def incr(self, key: str) -> int:
        async with self._lock:
            return self._data.incr(key)

    async def hget(self, key: str, field: str) -> bytes | None:
        async with self._lock:
            return self._data.hget(key, field)

    async def hset(self, key: str, field: str, value: StoreValue) -> None:
        async with self._lock:
            self._data.hset(key, field, value)

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        async with self._lock:
            return self._data.hincrby(key, field, amount)

    async def hdel(self, key: str, field: str) -> None:
        async with self._lock:
            self._data.hdel(key, field)

    async def hgetall(self, key: str) -> dict[str, bytes]:
        async with self._lock:
            return self._data.hgetall(key)

    async def keys(self) -> list[str]:
        """List live keys, including hashes."""
        async with self._lock:
            return self._data.keys()

    async def clear(self) -> None:
        """Drop every key."""
        async with self._lock:
            self._data.clear()

    async def ping(self) -> None:
        """Always reachable."""

    async def close(self) -> None:
        """Nothing to release (no-op for memory)."""
