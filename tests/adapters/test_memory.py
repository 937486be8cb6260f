"""Tests for memory stores."""

import pytest

from tagged_cache import AsyncMemoryStore, MemoryStore, StoreError


class TestMemoryStore:
    """Tests for sync MemoryStore."""

    def test_get_nonexistent_returns_none(self, store: MemoryStore) -> None:
        assert store.get("nonexistent") is None

    def test_set_and_get(self, store: MemoryStore) -> None:
        assert store.set("key1", b"value") is True
        assert store.get("key1") == b"value"

    def test_values_are_stored_as_bytes(self, store: MemoryStore) -> None:
        store.set("int", 42)
        store.set("str", "zoë")
        assert store.get("int") == b"42"
        assert store.get("str") == "zoë".encode()

    def test_ttl_expiration(self, store: MemoryStore, clock) -> None:
        store.set("key1", b"v", ttl=10)
        clock.advance(9)
        assert store.get("key1") == b"v"
        assert store.exists("key1")
        clock.advance(1)
        assert store.get("key1") is None
        assert not store.exists("key1")

    def test_set_nx(self, store: MemoryStore, clock) -> None:
        assert store.set("lock", 1, ttl=5, nx=True) is True
        assert store.set("lock", 2, ttl=5, nx=True) is False
        assert store.get("lock") == b"1"
        clock.advance(5)
        assert store.set("lock", 3, nx=True) is True

    def test_incr(self, store: MemoryStore) -> None:
        assert store.incr("counter") == 1
        assert store.incr("counter") == 2
        store.set("counter", 100)
        assert store.incr("counter") == 101

    def test_incr_keeps_ttl(self, store: MemoryStore, clock) -> None:
        store.set("counter", 1, ttl=10)
        store.incr("counter")
        clock.advance(10)
        assert store.get("counter") is None

    def test_incr_non_integer(self, store: MemoryStore) -> None:
        store.set("text", "abc")
        with pytest.raises(StoreError, match="not an integer"):
            store.incr("text")

    def test_hash_operations(self, store: MemoryStore) -> None:
        assert store.hget("h", "f") is None
        store.hset("h", "f", 5)
        assert store.hget("h", "f") == b"5"
        assert store.hincrby("h", "f", 2) == 7
        assert store.hincrby("h", "new") == 1
        assert store.hgetall("h") == {"f": b"7", "new": b"1"}
        assert store.exists("h")

        store.hdel("h", "f")
        store.hdel("h", "missing")
        store.hdel("other", "f")
        assert store.hgetall("h") == {"new": b"1"}

        store.hdel("h", "new")
        assert store.hgetall("h") == {}
        assert not store.exists("h")

    def test_hgetall_returns_a_copy(self, store: MemoryStore) -> None:
        store.hset("h", "f", 1)
        store.hgetall("h")["f"] = b"changed"
        assert store.hget("h", "f") == b"1"

    def test_keys_and_clear(self, store: MemoryStore, clock) -> None:
        store.set("b", 1)
        store.set("gone", 1, ttl=1)
        store.hset("a", "f", 1)
        clock.advance(1)
        assert store.keys() == ["a", "b"]

        store.clear()
        assert store.keys() == []

    def test_expired_entries_are_reclaimed_on_write(
        self, store: MemoryStore, clock
    ) -> None:
        for i in range(100):
            store.set(f"old:{i}", i, ttl=60)
        assert len(store) == 100

        clock.advance(60)
        store.set("fresh", 1, ttl=60)

        assert len(store) == 1
        assert store.get("fresh") == b"1"

    def test_rewritten_key_keeps_its_new_expiry(
        self, store: MemoryStore, clock
    ) -> None:
        store.set("k", 1, ttl=10)
        store.set("k", 2, ttl=100)
        clock.advance(10)
        store.set("other", 1)

        assert store.get("k") == b"2"

    def test_ping_and_close(self, store: MemoryStore) -> None:
        store.ping()
        store.close()


class TestAsyncMemoryStore:
    """Tests for async AsyncMemoryStore."""

    async def test_set_and_get(self, async_store: AsyncMemoryStore) -> None:
        assert await async_store.get("key1") is None
        assert await async_store.set("key1", b"value", ttl=5) is True
        assert await async_store.get("key1") == b"value"

    async def test_ttl_and_nx(self, async_store: AsyncMemoryStore, clock) -> None:
        assert await async_store.set("lock", 1, ttl=5, nx=True) is True
        assert await async_store.set("lock", 1, ttl=5, nx=True) is False
        assert await async_store.exists("lock")
        clock.advance(5)
        assert not await async_store.exists("lock")

    async def test_counters(self, async_store: AsyncMemoryStore) -> None:
        assert await async_store.incr("n") == 1
        assert await async_store.hincrby("h", "f") == 1
        assert await async_store.hincrby("h", "f", 3) == 4
        await async_store.hset("h", "g", "x")
        assert await async_store.hget("h", "g") == b"x"
        assert await async_store.hgetall("h") == {"f": b"4", "g": b"x"}
        await async_store.hdel("h", "g")
        assert await async_store.hgetall("h") == {"f": b"4"}

    async def test_keys_clear_ping_close(self, async_store: AsyncMemoryStore) -> None:
        await async_store.set("k", 1)
        assert await async_store.keys() == ["k"]
        await async_store.clear()
        assert await async_store.keys() == []
        await async_store.ping()
        await async_store.close()
