"""Base protocols for backing stores."""

from typing import Protocol, runtime_checkable

# Values written to a store; reads always return bytes
StoreValue = bytes | str | int


@runtime_checkable
class BackingStore(Protocol):
    """Sync key-value store with per-key expiry and hashes."""

    def get(self, key: str) -> bytes | None:
        """Get a value by key."""
        ...

    def set(
        self,
        key: str,
        value: StoreValue,
        ttl: int | None = None,
        *,
        nx: bool = False,
    ) -> bool:
        """Store a value, optionally expiring after ttl seconds.

        With nx=True the write only happens if the key is absent. Returns
        whether the value was written.
        """
        ...

    def exists(self, key: str) -> bool:
        """Check whether a key is present."""
        ...

    def incr(self, key: str) -> int:
        """Atomically increment an integer key and return the new value."""
        ...

    def hget(self, key: str, field: str) -> bytes | None:
        """Get one field of a hash."""
        ...

    def hset(self, key: str, field: str, value: StoreValue) -> None:
        """Set one field of a hash."""
        ...

    def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        """Atomically increment a hash field and return the new value."""
        ...

    def hdel(self, key: str, field: str) -> None:
        """Delete one field of a hash."""
        ...

    def hgetall(self, key: str) -> dict[str, bytes]:
        """Get every field of a hash."""
        ...

    def ping(self) -> None:
        """Check connectivity. Raises ConnectionFailure if unreachable."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...


@runtime_checkable
class AsyncBackingStore(Protocol):
    """Async key-value store with per-key expiry and hashes."""

    async def get(self, key: str) -> bytes | None:
        """Get a value by key."""
        ...

    async def set(
        self,
        key: str,
        value: StoreValue,
        ttl: int | None = None,
        *,
        nx: bool = False,
    ) -> bool:
        """Store a value, optionally expiring after ttl seconds."""
        ...

    async def exists(self, key: str) -> bool:
        """Check whether a key is present."""
        ...

    async def incr(self, key: str) -> int:
        """Atomically increment an integer key and return the new value."""
        ...

    async def hget(self, key: str, field: str) -> bytes | None:
        """Get one field of a hash."""
        ...

    async def hset(self, key: str, field: str, value: StoreValue) -> None:
        """Set one field of a hash."""
        ...

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        """Atomically increment a hash field and return the new value."""
        ...

    async def hdel(self, key: str, field: str) -> None:
        """Delete one field of a hash."""
        ...

    async def hgetall(self, key: str) -> dict[str, bytes]:
        """Get every field of a hash."""
        ...

    async def ping(self) -> None:
        """Check connectivity. Raises ConnectionFailure if unreachable."""
        ...

    async def close(self) -> None:
        """Release the connection."""
        ...
