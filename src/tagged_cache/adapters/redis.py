"""Redis backing stores."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import redis
import redis.asyncio

from tagged_cache.adapters.base import StoreValue
from tagged_cache.errors import ConnectionFailure, StoreError


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Re-raise redis client errors as tagged-cache errors."""
    try:
        yield
    except (redis.ConnectionError, redis.TimeoutError) as e:
        raise ConnectionFailure(f"Redis {operation} failed: {e}") from e
    except redis.RedisError as e:
        raise StoreError(f"Redis {operation} failed: {e}") from e


def _as_bytes(value: Any) -> bytes | None:
    """Normalize replies from clients created with or without decode_responses."""
    if value is None or isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def _as_hash(reply: dict[Any, Any]) -> dict[str, bytes]:
    result: dict[str, bytes] = {}
    for field, value in reply.items():
        name = field.decode("utf-8") if isinstance(field, bytes) else str(field)
        result[name] = _as_bytes(value) or b""
    return result


class RedisStore:
    """Sync Redis backing store."""

    def __init__(self, client: Any) -> None:  # redis.Redis
        self._client = client

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisStore:
        """Create a store from a ``redis://`` URL."""
        return cls(redis.Redis.from_url(url, **kwargs))

    def get(self, key: str) -> bytes | None:
        with _translate_errors("GET"):
            return _as_bytes(self._client.get(key))

    def set(
        self,
        key: str,
        value: StoreValue,
        ttl: int | None = None,
        *,
        nx: bool = False,
    ) -> bool:
        with _translate_errors("SET"):
            return bool(self._client.set(key, value, ex=ttl, nx=nx))

    def exists(self, key: str) -> bool:
        with _translate_errors("EXISTS"):
            return bool(self._client.exists(key))

    def incr(self, key: str) -> int:
        with _translate_errors("INCR"):
            return int(self._client.incr(key))

    def hget(self, key: str, field: str) -> bytes | None:
        with _translate_errors("HGET"):
            return _as_bytes(self._client.hget(key, field))

    def hset(self, key: str, field: str, value: StoreValue) -> None:
        with _translate_errors("HSET"):
            self._client.hset(key, field, value)

    def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        with _translate_errors("HINCRBY"):
            return int(self._client.hincrby(key, field, amount))

    def hdel(self, key: str, field: str) -> None:
        with _translate_errors("HDEL"):
            self._client.hdel(key, field)

    def hgetall(self, key: str) -> dict[str, bytes]:
        with _translate_errors("HGETALL"):
            return _as_hash(self._client.hgetall(key))

    def ping(self) -> None:
        with _translate_errors("PING"):
            self._client.ping()

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()


class AsyncRedisStore:
    """Async Redis backing store."""

    def __init__(self, client: Any) -> None:  # redis.asyncio.Redis
        self._client = client

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> AsyncRedisStore:
        """Create a store from a ``redis://`` URL."""
        return cls(redis.asyncio.Redis.from_url(url, **kwargs))

    async def get(self, key: str) -> bytes | None:
        with _translate_errors("GET"):
            return _as_bytes(await self._client.get(key))

    async def set(
        self,
        key: str,
        value: StoreValue,
        ttl: int | None = None,
        *,
        nx: bool = False,
    ) -> bool:
        with _translate_errors("SET"):
            return bool(await self._client.set(key, value, ex=ttl, nx=nx))

    async def exists(self, key: str) -> bool:
        with _translate_errors("EXISTS"):
            return bool(await self._client.exists(key))

    async def incr(self, key: str) -> int:
        with _translate_errors("INCR"):
            return int(await self._client.incr(key))

    async def hget(self, key: str, field: str) -> bytes | None:
        with _translate_errors("HGET"):
            return _as_bytes(await self._client.hget(key, field))

    async def hset(self, key: str, field: str, value: StoreValue) -> None:
        with _translate_errors("HSET"):
            await self._client.hset(key, field, value)

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        with _translate_errors("HINCRBY"):
            return int(await self._client.hincrby(key, field, amount))

    async def hdel(self, key: str, field: str) -> None:
        with _translate_errors("HDEL"):
            await self._client.hdel(key, field)

    async def hgetall(self, key: str) -> dict[str, bytes]:
        with _translate_errors("HGETALL"):
            return _as_hash(await self._client.hgetall(key))

    async def ping(self) -> None:
        with _translate_errors("PING"):
            await self._client.ping()

    async def close(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()
